"""
Exception types raised by the crawler.
"""
from __future__ import annotations

from typing import Optional


class CrawlerError(Exception):
    """Base class for crawler errors."""


class FetchError(CrawlerError):
    """A page could not be fetched (network, DNS or HTTP failure)."""

    def __init__(self, url: str, reason: str, status_code: Optional[int] = None) -> None:
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason
        self.status_code = status_code


class InvalidRunParameters(CrawlerError, ValueError):
    """Run parameters were rejected before the crawl started."""
