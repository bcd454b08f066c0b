import time

from rss_dashboard.aggregator import Aggregator
from rss_dashboard.registry import build_registry

from conftest import StubFetcher, rss_document, rss_item


def test_aggregate_fetches_feeds_in_parallel(cache):
    """Verify that execution time is significantly less than serial execution time."""

    DELAY = 0.5
    NUM_FEEDS = 5

    urls = [f"http://feed-{i}.example.com" for i in range(NUM_FEEDS)]
    registry = build_registry({"cat": [(url, f"Feed {i}") for i, url in enumerate(urls)]})
    fetcher = StubFetcher(
        {url: rss_document(rss_item(f"Post {i}", f"{url}/post")) for i, url in enumerate(urls)},
        delays={url: (lambda: time.sleep(DELAY)) for url in urls},
    )
    aggregator = Aggregator(registry, cache, fetcher=fetcher, concurrency=NUM_FEEDS)

    start = time.time()
    articles = aggregator.aggregate("cat")
    duration = time.time() - start

    assert [a.title for a in articles] == [f"Post {i}" for i in range(NUM_FEEDS)]
    # Serial would take DELAY * NUM_FEEDS.
    assert duration < (DELAY * NUM_FEEDS) / 2
    assert duration >= DELAY


def test_concurrency_limit_bounds_parallelism(cache):
    DELAY = 0.3

    urls = [f"http://limited-{i}.example.com" for i in range(4)]
    registry = build_registry({"cat": [(url, url) for url in urls]})
    fetcher = StubFetcher(
        {url: rss_document(rss_item("x", f"{url}/x")) for url in urls},
        delays={url: (lambda: time.sleep(DELAY)) for url in urls},
    )
    aggregator = Aggregator(registry, cache, fetcher=fetcher, concurrency=2)

    start = time.time()
    aggregator.aggregate("cat")
    duration = time.time() - start

    # Two waves of two.
    assert duration >= DELAY * 2
