"""
Breadth-first crawler over related videos.
Writes title, description, tags and view count of popular HD videos to a record sink.
"""
from vidcrawler.core import CrawlController, CrawlStats, Frontier, run_crawl
from vidcrawler.errors import CrawlerError, FetchError, InvalidRunParameters
from vidcrawler.extract import PageMetadata, Record

__version__ = "1.0.0"
__all__ = [
    "run_crawl",
    "CrawlController",
    "CrawlStats",
    "Frontier",
    "PageMetadata",
    "Record",
    "CrawlerError",
    "FetchError",
    "InvalidRunParameters",
]
