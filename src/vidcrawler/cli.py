"""
Command-line interface for the crawler.
"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from vidcrawler.config import parse_run_parameters
from vidcrawler.core import CrawlController, CrawlStats
from vidcrawler.errors import InvalidRunParameters
from vidcrawler.fetch import DEFAULT_TIMEOUT_S, DEFAULT_USER_AGENT, HttpPageFetcher
from vidcrawler.sinks import SINK_FORMATS, open_sink


def print_summary(stats: CrawlStats) -> None:
    """Print crawl summary to stderr."""
    sys.stderr.write("=" * 50 + "\n")
    sys.stderr.write("CRAWL SUMMARY\n")
    sys.stderr.write("=" * 50 + "\n\n")

    sys.stderr.write(f"Records written:        {stats.accepted_count}\n")
    sys.stderr.write(f"Videos crawled:         {stats.crawled_count}\n")
    sys.stderr.write(f"Videos rejected:        {stats.rejected_count}\n")
    sys.stderr.write(f"Started at:             {stats.started_at}\n")
    sys.stderr.write(f"Elapsed seconds:        {stats.elapsed_time:.1f}\n")
    sys.stderr.write(f"Fetch errors:           {stats.fetch_errors}\n\n")

    if stats.error_counts:
        sys.stderr.write("Fetch errors by type:\n")
        for error_type, count in sorted(stats.error_counts.items()):
            label = "Connection errors" if error_type == "connection_error" else f"HTTP {error_type}"
            sys.stderr.write(f"  {label}: {count}\n")
    else:
        sys.stderr.write("No fetch errors encountered.\n")

    sys.stderr.write("\n")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the crawler CLI."""
    parser = argparse.ArgumentParser(
        description="Crawl related videos breadth-first and record popular HD videos."
    )
    parser.add_argument("seed_url", help="Watch URL of the seed video (e.g. https://www.youtube.com/watch?v=pHKz2bU5dbU)")
    parser.add_argument("min_views", help="Record only videos with more views than this")
    parser.add_argument("output", help="Output file path, or '-' for stdout")
    parser.add_argument("target_count", help="Number of records to write, seed video included")
    parser.add_argument("--format", choices=sorted(SINK_FORMATS), default="tsv", help="Output format (default: tsv)")
    parser.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT_S, help="Request timeout in seconds (default: 15)")
    parser.add_argument("--user-agent", default=DEFAULT_USER_AGENT, help="User-Agent header")
    parser.add_argument("--verbose", action="store_true", help="Log progress to stderr")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the crawler CLI."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )

    # Reject bad parameters before the output file is created
    try:
        params = parse_run_parameters(args.seed_url, args.min_views, args.target_count)
    except InvalidRunParameters as e:
        sys.stderr.write(f"Invalid run parameters: {e}\n")
        return 2

    try:
        sink = open_sink(args.output, args.format)
    except OSError as e:
        sys.stderr.write(f"Could not open output {args.output}: {e}\n")
        return 1

    fetcher = HttpPageFetcher(timeout_s=args.timeout, user_agent=args.user_agent)
    controller = CrawlController(
        seed_url=params.seed_url,
        min_views=params.min_views,
        target_count=params.target_count,
        sink=sink,
        fetcher=fetcher,
    )

    interrupted = False
    try:
        controller.run()
    except KeyboardInterrupt:
        interrupted = True
        sys.stderr.write("\nInterrupted, stopping crawl.\n")
    finally:
        fetcher.close()

    print_summary(controller.stats)
    if controller.stats.accepted_count == 0 and not interrupted:
        sys.stderr.write(f"Could not fetch seed page {params.seed_url}\n")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
