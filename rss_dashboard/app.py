"""Dashboard operations: startup, category selection, refresh and theme toggle."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from . import db
from .aggregator import Aggregator, EmptyAggregateError, Fetcher
from .cache import ArticleCache, CategorySelection, ThemePreference
from .config import AppConfig, StorageConfig
from .feeds import RelayFetcher
from .models import ArticleRecord
from .registry import ALL_CATEGORIES, load_default_registry, load_registry
from .storage import DatabaseStore, JsonFileStore, KeyValueStore, MemoryStore

logger = logging.getLogger(__name__)

EMPTY_MESSAGE = "No articles available. Try refreshing."


@dataclass
class DashboardView:
    """What the presenter needs to draw one screen."""

    articles: List[ArticleRecord]
    category: str
    categories: List[str] = field(default_factory=list)
    dark_mode: bool = False
    message: Optional[str] = None
    from_cache: bool = False


class Dashboard:
    def __init__(
        self,
        aggregator: Aggregator,
        theme: ThemePreference,
        default_category: str = ALL_CATEGORIES,
        selection: Optional[CategorySelection] = None,
    ):
        self.aggregator = aggregator
        self.theme = theme
        self.default_category = default_category
        self.selection = selection
        self.current_category = self._restore_selection()

    def categories(self) -> List[str]:
        return [ALL_CATEGORIES] + self.aggregator.registry.categories()

    def startup(self) -> DashboardView:
        """Show cached articles at once, or aggregate the default category."""
        cached = self.aggregator.cache.read()
        if cached:
            logger.info("Loading %d cached articles", len(cached))
            # Records carry the selector they were aggregated for.
            tags = {article.category for article in cached}
            if len(tags) == 1:
                (shown,) = tags
                if self._is_known(shown):
                    self.current_category = shown
            return self._view(cached, from_cache=True)

        self.current_category = self.default_category
        return self._aggregate(self.default_category)

    def select_category(self, category: str) -> DashboardView:
        self.current_category = category
        if self.selection is not None:
            self.selection.set(category)
        return self._aggregate(category)

    def refresh(self) -> DashboardView:
        return self._aggregate(self.current_category)

    def toggle_theme(self) -> bool:
        return self.theme.toggle()

    def _is_known(self, category: str) -> bool:
        return category == ALL_CATEGORIES or category in self.aggregator.registry

    def _restore_selection(self) -> str:
        stored = self.selection.get() if self.selection is not None else None
        if stored and self._is_known(stored):
            return stored
        if stored:
            logger.warning("Stored category '%s' is no longer configured", stored)
        return self.default_category

    def _aggregate(self, category: str) -> DashboardView:
        try:
            articles = self.aggregator.aggregate(category)
        except EmptyAggregateError as exc:
            logger.warning("%s", exc)
            return self._view([], message=EMPTY_MESSAGE)
        return self._view(articles)

    def _view(
        self,
        articles: List[ArticleRecord],
        message: Optional[str] = None,
        from_cache: bool = False,
    ) -> DashboardView:
        return DashboardView(
            articles=list(articles),
            category=self.current_category,
            categories=self.categories(),
            dark_mode=self.theme.is_dark(),
            message=message,
            from_cache=from_cache,
        )


def open_store(storage: StorageConfig) -> KeyValueStore:
    """Create the key-value store selected by the storage config."""
    if storage.backend == "memory":
        logger.info("Using in-memory state; nothing will persist")
        return MemoryStore()

    if storage.backend == "database":
        engine = db.init_engine(storage.connection_string)
        if engine is None:
            raise ValueError("Database storage requires a connection string.")
        return DatabaseStore.from_engine(engine)

    logger.info("Using state file %s", storage.path)
    return JsonFileStore(storage.path)


def build_dashboard(
    config: AppConfig,
    store: Optional[KeyValueStore] = None,
    fetcher: Optional[Fetcher] = None,
) -> Dashboard:
    """Wire registry, fetcher, cache and theme from configuration."""
    if config.feeds_file:
        registry = load_registry(config.feeds_file)
    else:
        registry = load_default_registry()

    if config.default_category != ALL_CATEGORIES and config.default_category not in registry:
        raise ValueError(f"Default category '{config.default_category}' is not configured.")

    store = store if store is not None else open_store(config.storage)
    fetcher = fetcher or RelayFetcher(config.relay_url, timeout=config.timeout)
    aggregator = Aggregator(
        registry=registry,
        cache=ArticleCache(store),
        fetcher=fetcher,
        concurrency=config.concurrency,
    )
    return Dashboard(
        aggregator,
        ThemePreference(store),
        config.default_category,
        selection=CategorySelection(store),
    )
