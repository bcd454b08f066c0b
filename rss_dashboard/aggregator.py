"""Concurrent fetch, parse and merge of every feed behind a category selector."""

from __future__ import annotations

import concurrent.futures
import itertools
import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol, Tuple

from .cache import ArticleCache
from .feeds import FetchOutcome, ParseOutcome, RelayFetcher, parse_feed
from .models import ArticleRecord, FeedSource, SourceFailure, SourceResult
from .registry import ALL_CATEGORIES, FeedRegistry

logger = logging.getLogger(__name__)


class Fetcher(Protocol):
    def fetch(self, source_url: str) -> FetchOutcome:
        """Return raw feed markup or a fetch failure."""


Parser = Callable[[str, str], ParseOutcome]


class EmptyAggregateError(RuntimeError):
    """Raised when no source behind a selector produced any article."""

    def __init__(self, selector: str, sources_attempted: int):
        self.selector = selector
        self.sources_attempted = sources_attempted
        super().__init__(
            f"No articles were retrieved for '{selector}' "
            f"from {sources_attempted} feed(s)."
        )


@dataclass
class AggregationReport:
    """Everything one aggregation produced."""

    selector: str
    sequence: int
    results: List[SourceResult]
    articles: List[ArticleRecord]
    cached: bool = False
    failures: List[SourceFailure] = field(init=False)

    def __post_init__(self) -> None:
        self.failures = [result.failure for result in self.results if result.failure]


class Aggregator:
    """Fan out fetch+parse over a selector's sources and cache the merged list.

    Overlapping calls are allowed. Each call is numbered when it starts and a
    call only writes the cache if no later-started call has written already,
    so a slow, stale refresh never replaces a newer result.
    """

    def __init__(
        self,
        registry: FeedRegistry,
        cache: ArticleCache,
        fetcher: Optional[Fetcher] = None,
        parser: Parser = parse_feed,
        concurrency: int = 10,
    ):
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1.")

        self.registry = registry
        self.cache = cache
        self.fetcher = fetcher or RelayFetcher()
        self.parser = parser
        self.concurrency = concurrency

        self._sequence = itertools.count(1)
        self._lock = threading.Lock()
        self._last_written = 0

    def aggregate(self, selector: str = ALL_CATEGORIES) -> List[ArticleRecord]:
        """Return the merged article list for ``selector``."""
        return self.run(selector).articles

    def run(self, selector: str = ALL_CATEGORIES) -> AggregationReport:
        with self._lock:
            sequence = next(self._sequence)

        sources = self.registry.resolve(selector)
        logger.info(
            "Aggregating %d feeds for '%s' (request %d)", len(sources), selector, sequence
        )

        results = self._collect(sources)
        articles = [
            ArticleRecord.from_item(item, selector, result.source.name)
            for result in results
            for item in result.items
        ]

        report = AggregationReport(
            selector=selector, sequence=sequence, results=results, articles=articles
        )
        if report.failures:
            logger.info(
                "%d of %d feeds failed for '%s'",
                len(report.failures),
                len(sources),
                selector,
            )

        if not articles:
            logger.warning(
                "No articles found for '%s'. Check feed URLs or the relay.", selector
            )
            raise EmptyAggregateError(selector, len(sources))

        report.cached = self._write_cache(sequence, articles)
        logger.info("Aggregated %d articles for '%s'", len(articles), selector)
        return report

    def _collect(self, sources: List[Tuple[str, FeedSource]]) -> List[SourceResult]:
        if not sources:
            return []

        workers = min(self.concurrency, len(sources))
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                executor.submit(self._process_source, category, source)
                for category, source in sources
            ]
            concurrent.futures.wait(futures)

        # Submission order, not completion order.
        return [future.result() for future in futures]

    def _process_source(self, category: str, source: FeedSource) -> SourceResult:
        stage = "fetch"
        try:
            markup = self.fetcher.fetch(source.url)
            if isinstance(markup, SourceFailure):
                return SourceResult(category=category, source=source, failure=markup)

            stage = "parse"
            parsed = self.parser(markup, source.url)
            if isinstance(parsed, SourceFailure):
                return SourceResult(category=category, source=source, failure=parsed)

            return SourceResult(category=category, source=source, items=list(parsed))
        except Exception as exc:  # noqa: BLE001 - one feed must not abort the batch
            logger.exception("Failed to process feed %s", source.url)
            return SourceResult(
                category=category,
                source=source,
                failure=SourceFailure(kind=stage, url=source.url, reason=str(exc)),
            )

    def _write_cache(self, sequence: int, articles: List[ArticleRecord]) -> bool:
        with self._lock:
            if sequence < self._last_written:
                logger.info(
                    "Not caching request %d; newer request %d already cached",
                    sequence,
                    self._last_written,
                )
                return False
            self.cache.write(articles)
            self._last_written = sequence
            return True
