import pytest

from conftest import SEED_ID, SEED_URL, FakeFetcher, make_page, watch_url

from vidcrawler.core import CrawlController, CrawlState, run_crawl
from vidcrawler.errors import InvalidRunParameters
from vidcrawler.sinks import MemoryRecordSink

A, B, C, D = "AAAAAAAAAAA", "BBBBBBBBBBB", "CCCCCCCCCCC", "DDDDDDDDDDD"


def seed_page(**kwargs):
    kwargs.setdefault("title", "My Video")
    kwargs.setdefault("description", "Seed description")
    kwargs.setdefault("tags", ["funny", "cats"])
    kwargs.setdefault("view_count", 500000)
    kwargs.setdefault("links", [SEED_ID, A, B])
    return make_page(**kwargs)


class TestRunCrawl:
    def test_stops_when_target_reached(self):
        fetcher = FakeFetcher({
            SEED_URL: seed_page(),
            watch_url(A): make_page(title="Video A", view_count=200000, links=[C]),
            watch_url(B): make_page(title="Video B", view_count=300000),
        })
        sink = MemoryRecordSink()

        stats = run_crawl(SEED_URL, 100000, 2, sink, fetcher)

        assert fetcher.calls == [SEED_URL, watch_url(A)]
        assert [r.title for r in sink.records] == ["My Video", "Video A"]
        root = sink.records[0]
        assert root.url == SEED_URL
        assert root.tags == "funny, cats"
        assert root.view_count == 500000
        assert stats.accepted_count == 2
        assert stats.crawled_count == 1
        assert sink.close_count == 1

    def test_seed_recorded_regardless_of_filter(self):
        fetcher = FakeFetcher({SEED_URL: seed_page(view_count=None, hd=False, links=[])})
        sink = MemoryRecordSink()

        stats = run_crawl(SEED_URL, 100000, 5, sink, fetcher)

        assert len(sink.records) == 1
        assert sink.records[0].view_count is None
        assert stats.accepted_count == 1
        assert stats.crawled_count == 0

    def test_target_of_one_fetches_only_seed(self):
        fetcher = FakeFetcher({SEED_URL: seed_page()})
        stats = run_crawl(SEED_URL, 0, 1, MemoryRecordSink(), fetcher)
        assert fetcher.calls == [SEED_URL]
        assert stats.crawled_count == 0

    def test_breadth_first_order(self):
        fetcher = FakeFetcher({
            SEED_URL: seed_page(links=[A, B]),
            watch_url(A): make_page(hd=False, links=[C, SEED_ID]),
            watch_url(B): make_page(hd=False, links=[D, A]),
            watch_url(C): make_page(hd=False),
            watch_url(D): make_page(hd=False, links=[B]),
        })
        sink = MemoryRecordSink()

        stats = run_crawl(SEED_URL, 0, 10, sink, fetcher)

        assert fetcher.calls == [SEED_URL] + [watch_url(v) for v in (A, B, C, D)]
        assert stats.crawled_count == 4
        assert stats.rejected_count == 4
        assert stats.accepted_count == 1

    def test_filter_rejects_unpopular_and_non_hd(self):
        fetcher = FakeFetcher({
            SEED_URL: seed_page(links=[A, B, C, D]),
            watch_url(A): make_page(title="low views", view_count=100000),
            watch_url(B): make_page(title="not hd", view_count=900000, hd=False),
            watch_url(C): make_page(title="no count", view_count=None),
            watch_url(D): make_page(title="ok", view_count=100001),
        })
        sink = MemoryRecordSink()

        stats = run_crawl(SEED_URL, 100000, 10, sink, fetcher)

        assert [r.title for r in sink.records] == ["My Video", "ok"]
        assert stats.rejected_count == 3
        assert stats.crawled_count == 4

    def test_fetch_failure_is_skipped(self):
        fetcher = FakeFetcher({
            SEED_URL: seed_page(links=[A, B]),
            watch_url(B): make_page(title="Video B", view_count=300000),
        })
        sink = MemoryRecordSink()

        stats = run_crawl(SEED_URL, 100000, 2, sink, fetcher)

        assert fetcher.calls == [SEED_URL, watch_url(A), watch_url(B)]
        assert [r.title for r in sink.records] == ["My Video", "Video B"]
        assert stats.crawled_count == 2
        assert stats.error_counts == {"404": 1}
        assert stats.fetch_errors == 1

    def test_failed_identifier_is_not_retried(self):
        fetcher = FakeFetcher({
            SEED_URL: seed_page(links=[A, B]),
            watch_url(B): make_page(hd=False, links=[A]),
        })
        run_crawl(SEED_URL, 0, 10, MemoryRecordSink(), fetcher)
        assert fetcher.calls.count(watch_url(A)) == 1

    def test_terminates_when_frontier_exhausted(self):
        fetcher = FakeFetcher({
            SEED_URL: seed_page(links=[A]),
            watch_url(A): make_page(view_count=5, links=[SEED_ID, A]),
        })
        sink = MemoryRecordSink()

        stats = run_crawl(SEED_URL, 0, 100, sink, fetcher)

        assert stats.accepted_count == 2
        assert stats.crawled_count == 1
        assert sink.close_count == 1

    def test_seed_fetch_failure_ends_run_without_records(self):
        sink = MemoryRecordSink()
        fetcher = FakeFetcher({})

        stats = run_crawl(SEED_URL, 0, 10, sink, fetcher)

        assert fetcher.calls == [SEED_URL]
        assert stats.accepted_count == 0
        assert stats.crawled_count == 0
        assert stats.error_counts == {"404": 1}
        assert sink.close_count == 1
        assert sink.records == []

    @pytest.mark.parametrize("min_views, target_count", [("many", 5), (10, 0), (10, "x")])
    def test_invalid_parameters_rejected_before_fetch(self, min_views, target_count):
        fetcher = FakeFetcher({SEED_URL: seed_page()})
        sink = MemoryRecordSink()
        with pytest.raises(InvalidRunParameters):
            run_crawl(SEED_URL, min_views, target_count, sink, fetcher)
        assert fetcher.calls == []
        assert sink.records == []


class TestCrawlController:
    def test_cancel_stops_before_next_dequeue(self):
        pages = {
            SEED_URL: seed_page(links=[A, B, C]),
            watch_url(A): make_page(hd=False),
            watch_url(B): make_page(hd=False),
        }
        sink = MemoryRecordSink()
        controller = None

        class CancellingFetcher(FakeFetcher):
            def fetch(self, url):
                text = super().fetch(url)
                if url == watch_url(A):
                    controller.cancel()
                return text

        fetcher = CancellingFetcher(pages)
        controller = CrawlController(SEED_URL, 0, 10, sink, fetcher)
        stats = controller.run()

        assert fetcher.calls == [SEED_URL, watch_url(A)]
        assert stats.crawled_count == 1
        assert controller.state is CrawlState.TERMINATED
        assert len(controller.frontier) == 2

    def test_state_starts_seeding(self):
        controller = CrawlController(SEED_URL, 0, 10, MemoryRecordSink(), FakeFetcher({}))
        assert controller.state is CrawlState.SEEDING
        assert controller.seed_id == SEED_ID

    def test_stats_timing(self):
        fetcher = FakeFetcher({SEED_URL: seed_page(links=[])})
        stats = CrawlController(SEED_URL, 0, 3, MemoryRecordSink(), fetcher).run()
        assert stats.elapsed_time >= 0
        assert stats.started_at is not None

    def test_seed_fetch_failure_terminates(self):
        controller = CrawlController(SEED_URL, 0, 10, MemoryRecordSink(), FakeFetcher({}))
        stats = controller.run()
        assert controller.state is CrawlState.TERMINATED
        assert len(controller.frontier) == 0
        assert stats.fetch_errors == 1
