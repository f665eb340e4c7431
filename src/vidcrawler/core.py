"""
Core crawling logic and data structures.
"""
from __future__ import annotations

import logging
import time
from collections import defaultdict, deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Deque, Dict, Optional, Set

from vidcrawler.config import DEFAULT_PATTERNS, ExtractionPatterns, parse_run_parameters
from vidcrawler.errors import FetchError
from vidcrawler.extract import (
    accepts,
    build_page_metadata,
    build_record,
    discover_links,
    parse_view_count,
    Record,
)
from vidcrawler.fetch import PageFetcher
from vidcrawler.sinks import RecordSink

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CrawlStats:
    """Statistics collected during a crawl run."""
    accepted_count: int = 0
    crawled_count: int = 0
    elapsed_time: float = 0.0
    started_at: Optional[str] = None
    rejected_count: int = 0
    error_counts: Dict[str, int] = field(default_factory=lambda: defaultdict(int))

    def record_error(self, status_code: Optional[int]) -> None:
        """Record a fetch failure by status code category."""
        if status_code is None:
            self.error_counts["connection_error"] += 1
        else:
            self.error_counts[str(status_code)] += 1

    @property
    def fetch_errors(self) -> int:
        """Total number of failed fetches."""
        return sum(self.error_counts.values())


def utc_now_iso() -> str:
    """Return current UTC time in ISO format."""
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


@dataclass(slots=True)
class Frontier:
    """
    BFS queue of video identifiers plus the set of every identifier seen.

    An identifier is added to ``visited`` when it is enqueued and is never
    removed, so it is enqueued at most once per run.
    """
    queue: Deque[str] = field(default_factory=deque)
    visited: Set[str] = field(default_factory=set)

    def seed(self, root_id: str) -> None:
        """Mark the root visited without queueing it."""
        self.visited.add(root_id)

    def offer(self, video_id: str) -> bool:
        """Queue ``video_id`` unless it was seen before. Returns True if queued."""
        if video_id in self.visited:
            return False
        self.visited.add(video_id)
        self.queue.append(video_id)
        return True

    def next(self) -> Optional[str]:
        """Pop the oldest queued identifier, or None when empty."""
        if not self.queue:
            return None
        return self.queue.popleft()

    def __len__(self) -> int:
        return len(self.queue)

    def __bool__(self) -> bool:
        return bool(self.queue)


class CrawlState(Enum):
    SEEDING = "seeding"
    LOOPING = "looping"
    TERMINATED = "terminated"


class CrawlController:
    """
    Drives one crawl run: record the seed page, then walk related videos
    breadth-first until ``target_count`` records are written or the frontier
    runs dry.

    ``accepted_count`` includes the seed record, so a run with
    ``target_count=N`` writes at most N records.
    """

    def __init__(
        self,
        seed_url: str,
        min_views: int,
        target_count: int,
        sink: RecordSink,
        fetcher: PageFetcher,
        patterns: ExtractionPatterns = DEFAULT_PATTERNS,
    ) -> None:
        params = parse_run_parameters(seed_url, min_views, target_count)
        self.seed_url = params.seed_url
        self.seed_id = params.seed_id
        self.min_views = params.min_views
        self.target_count = params.target_count
        self.sink = sink
        self.fetcher = fetcher
        self.patterns = patterns
        self.frontier = Frontier()
        self.stats = CrawlStats()
        self.state = CrawlState.SEEDING
        self._cancelled = False

    def cancel(self) -> None:
        """Stop before the next dequeue."""
        self._cancelled = True

    def run(self) -> CrawlStats:
        """Run the crawl to completion and close the sink."""
        started = time.monotonic()
        self.stats.started_at = utc_now_iso()
        try:
            self._seed()
            self.state = CrawlState.LOOPING
            while self._should_continue():
                self._step()
        finally:
            self.state = CrawlState.TERMINATED
            self.sink.close()
            self.stats.elapsed_time = time.monotonic() - started

        logger.info(
            "Crawl finished: %d records written, %d videos crawled in %.1fs",
            self.stats.accepted_count, self.stats.crawled_count, self.stats.elapsed_time,
        )
        return self.stats

    def _should_continue(self) -> bool:
        return (
            not self._cancelled
            and bool(self.frontier)
            and self.stats.accepted_count < self.target_count
        )

    def _seed(self) -> None:
        logger.info("Starting crawl from: %s", self.seed_url)
        try:
            page_text = self.fetcher.fetch(self.seed_url)
        except FetchError as e:
            # Nothing to crawl from; the frontier stays empty
            logger.warning("Could not fetch seed page %s: %s", self.seed_url, e.reason)
            self.stats.record_error(e.status_code)
            return

        metadata = build_page_metadata(self.seed_url, page_text, self.patterns)
        self._emit(build_record(metadata, self.patterns.tag_separator))

        self.frontier.seed(self.seed_id)
        self._offer_links(page_text, self.seed_id)

    def _step(self) -> None:
        video_id = self.frontier.next()
        if video_id is None:
            return
        self.stats.crawled_count += 1
        url = self.patterns.watch_url(video_id)
        logger.debug(
            "[%d/%d] %s (queue: %d)",
            self.stats.accepted_count, self.target_count, url, len(self.frontier),
        )

        try:
            page_text = self.fetcher.fetch(url)
        except FetchError as e:
            logger.warning("Skipping %s: %s", url, e.reason)
            self.stats.record_error(e.status_code)
            return

        view_count = parse_view_count(page_text, self.patterns.view_counts)
        if accepts(page_text, view_count, self.min_views, self.patterns):
            metadata = build_page_metadata(url, page_text, self.patterns)
            self._emit(build_record(metadata, self.patterns.tag_separator))
        else:
            self.stats.rejected_count += 1
            logger.debug("Rejected %s (views: %s)", url, view_count)

        new_links = self._offer_links(page_text, video_id)
        logger.debug("  -> %s (+%d links)", url, new_links)

    def _emit(self, record: Record) -> None:
        self.sink.write(record)
        self.stats.accepted_count += 1
        logger.info("Recorded %s: %s (%s views)", record.url, record.title, record.view_count)

    def _offer_links(self, page_text: str, self_id: str) -> int:
        new_links = 0
        for video_id in discover_links(page_text, self_id, self.patterns):
            if self.frontier.offer(video_id):
                new_links += 1
        return new_links


def run_crawl(
    seed_url: str,
    min_views: int,
    target_count: int,
    sink: RecordSink,
    fetcher: PageFetcher,
    patterns: ExtractionPatterns = DEFAULT_PATTERNS,
) -> CrawlStats:
    """
    Crawl related videos breadth-first starting from ``seed_url``.

    Args:
        seed_url: Watch URL of the seed video. It is always recorded once fetched.
        min_views: Pages need strictly more views than this to be recorded.
        target_count: Maximum number of records to write, seed included.
        sink: Receives one record per accepted page; closed when the run ends.
        fetcher: Returns page text for a URL or raises FetchError.
        patterns: Markup dialect to extract metadata and links with.

    Returns:
        Crawl statistics.

    Raises:
        InvalidRunParameters: before any fetch, if the parameters are invalid.
    """
    controller = CrawlController(seed_url, min_views, target_count, sink, fetcher, patterns)
    return controller.run()
