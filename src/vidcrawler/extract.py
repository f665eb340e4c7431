"""
Pattern based extraction of video metadata and out-links from page text.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple

from vidcrawler.config import DEFAULT_PATTERNS, ExtractionPatterns, FieldPattern
from vidcrawler.entities import decode_tail

_DIGITS = re.compile(r"\d+", re.ASCII)


@dataclass(frozen=True, slots=True)
class PageMetadata:
    """Metadata extracted from a single video page."""
    url: str
    title: str
    description: str
    tags: Tuple[str, ...]
    view_count: Optional[int]
    is_high_definition: bool


@dataclass(frozen=True, slots=True)
class Record:
    """Row written to a record sink for an accepted page."""
    url: str
    title: str
    description: str
    tags: str
    view_count: Optional[int]

    def fields(self) -> List[str]:
        """Field values in output column order."""
        count = "" if self.view_count is None else str(self.view_count)
        return [self.url, self.title, self.description, self.tags, count]


def extract_field(page_text: str, anchor: str, terminator: str = '">', max_length: int = 250) -> Iterator[str]:
    """
    Yield the value following each occurrence of ``anchor`` in ``page_text``.

    A value ends right before ``terminator``, after ``max_length`` characters,
    or at the end of the text, whichever comes first. Entities are decoded as
    the value is accumulated. A value cut off by the length bound is yielded
    as-is; nothing is raised for malformed markup.
    """
    if not anchor:
        return
    for match in re.finditer(re.escape(anchor), page_text):
        start = match.end()
        value = ""
        for offset in range(max_length):
            pos = start + offset
            if pos >= len(page_text) or page_text.startswith(terminator, pos):
                break
            value = decode_tail(value + page_text[pos])
        yield value


def extract_values(page_text: str, pattern: FieldPattern) -> List[str]:
    """Collect every value of ``pattern`` in ``page_text``."""
    return list(extract_field(page_text, pattern.anchor, pattern.terminator, pattern.max_length))


def parse_view_count(page_text: str, patterns: Sequence[FieldPattern]) -> Optional[int]:
    """
    Return the first all-digit view count found, trying ``patterns`` in order.

    ``None`` means no parseable count is present, which is not the same as zero.
    """
    for pattern in patterns:
        for value in extract_field(page_text, pattern.anchor, pattern.terminator, pattern.max_length):
            value = value.strip()
            if _DIGITS.fullmatch(value):
                return int(value)
    return None


def is_high_definition(page_text: str, patterns: ExtractionPatterns = DEFAULT_PATTERNS) -> bool:
    """Check whether the page advertises 720p playback."""
    return patterns.hd_marker in page_text


def accepts(page_text: str, view_count: Optional[int], min_views: int,
            patterns: ExtractionPatterns = DEFAULT_PATTERNS) -> bool:
    """Check the 720p marker and that ``view_count`` is strictly above ``min_views``."""
    if view_count is None:
        return False
    return is_high_definition(page_text, patterns) and view_count > min_views


def discover_links(page_text: str, self_id: Optional[str],
                   patterns: ExtractionPatterns = DEFAULT_PATTERNS) -> List[str]:
    """
    Find the video identifiers linked from ``page_text``.

    Identifiers are deduplicated and returned in order of first appearance.
    ``self_id`` is never included.
    """
    found = {}
    for match in patterns.link_pattern.finditer(page_text):
        video_id = match.group(1)
        if video_id != self_id:
            found.setdefault(video_id, None)
    return list(found)


def build_page_metadata(url: str, page_text: str,
                        patterns: ExtractionPatterns = DEFAULT_PATTERNS) -> PageMetadata:
    """Extract all metadata fields of a page."""
    titles = extract_values(page_text, patterns.title)
    descriptions = extract_values(page_text, patterns.description)
    return PageMetadata(
        url=url,
        title=titles[0] if titles else "",
        description=descriptions[0] if descriptions else "",
        tags=tuple(extract_values(page_text, patterns.tags)),
        view_count=parse_view_count(page_text, patterns.view_counts),
        is_high_definition=is_high_definition(page_text, patterns),
    )


def build_record(metadata: PageMetadata, tag_separator: str = ", ") -> Record:
    """Reduce page metadata to the row written for it, joining the tags."""
    return Record(
        url=metadata.url,
        title=metadata.title,
        description=metadata.description,
        tags=tag_separator.join(metadata.tags),
        view_count=metadata.view_count,
    )
