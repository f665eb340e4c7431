"""
Extraction patterns and run parameters.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Tuple

from vidcrawler.errors import InvalidRunParameters


@dataclass(frozen=True, slots=True)
class FieldPattern:
    """Anchor that precedes a field value and the two characters that end it."""
    anchor: str
    terminator: str = '">'
    max_length: int = 250


@dataclass(frozen=True, slots=True)
class ExtractionPatterns:
    """Markup dialect of the crawled platform."""
    title: FieldPattern
    description: FieldPattern
    tags: FieldPattern
    # Tried in order; the first one that yields a number wins
    view_counts: Tuple[FieldPattern, ...]
    hd_marker: str
    link_pattern: "re.Pattern[str]"
    host_prefix: str
    watch_path: str = "/watch?v="
    tag_separator: str = ", "

    def watch_url(self, video_id: str) -> str:
        """Build the full page URL for a video identifier."""
        return f"{self.host_prefix}{self.watch_path}{video_id}"


DEFAULT_PATTERNS = ExtractionPatterns(
    title=FieldPattern('og:title" content="'),
    description=FieldPattern('og:description" content="'),
    tags=FieldPattern('og:video:tag" content="'),
    view_counts=(
        FieldPattern('"view_count":"', terminator='",', max_length=50),
        FieldPattern('itemprop="interactionCount" content="', max_length=50),
    ),
    hd_marker='height" content="720"',
    link_pattern=re.compile(r"/watch\?v=(\w{11})", re.ASCII),
    host_prefix="https://www.youtube.com",
)

# Identifier in a watch URL query string, e.g. ...watch?v=pHKz2bU5dbU
SEED_ID_PATTERN = re.compile(r"[?&]v=(\w{11})", re.ASCII)


def video_id_from_url(url: str) -> Optional[str]:
    """Return the video identifier carried by a watch URL, if any."""
    match = SEED_ID_PATTERN.search(url)
    return match.group(1) if match else None


@dataclass(frozen=True, slots=True)
class RunParameters:
    """Validated parameters of one crawl run."""
    seed_url: str
    min_views: int
    target_count: int
    seed_id: str


def _parse_int(name: str, value: object) -> int:
    if isinstance(value, bool):
        raise InvalidRunParameters(f"{name} must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        raise InvalidRunParameters(f"{name} must be an integer, got {value!r}") from None


def parse_run_parameters(seed_url: str, min_views: object, target_count: object) -> RunParameters:
    """
    Validate raw run parameters.

    Raises:
        InvalidRunParameters: if a count is not an integer, ``target_count`` is
            not positive, or ``seed_url`` carries no video identifier.
    """
    views = _parse_int("min_views", min_views)
    count = _parse_int("target_count", target_count)
    if count <= 0:
        raise InvalidRunParameters(f"target_count must be positive, got {count}")
    seed_id = video_id_from_url(seed_url or "")
    if seed_id is None:
        raise InvalidRunParameters(f"Seed URL has no video identifier: {seed_url!r}")
    return RunParameters(seed_url=seed_url, min_views=views, target_count=count, seed_id=seed_id)
