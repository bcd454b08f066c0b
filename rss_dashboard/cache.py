"""Article cache slot, theme flag and category selection in a key-value store."""

from __future__ import annotations

import json
import logging
from typing import List, Optional, Sequence

from .models import ArticleRecord
from .storage import KeyValueStore

logger = logging.getLogger(__name__)

ARTICLES_KEY = "cachedArticles"
DARK_MODE_KEY = "darkMode"
SELECTED_CATEGORY_KEY = "selectedCategory"


class ArticleCache:
    """Single slot holding the most recently aggregated article list."""

    def __init__(self, store: KeyValueStore, key: str = ARTICLES_KEY):
        self._store = store
        self._key = key

    def write(self, articles: Sequence[ArticleRecord]) -> None:
        """Replace the cached list with ``articles``."""
        payload = json.dumps([article.to_dict() for article in articles], ensure_ascii=False)
        self._store.set(self._key, payload)
        logger.info("Cached %d articles", len(articles))

    def read(self) -> Optional[List[ArticleRecord]]:
        """Return the cached list, or ``None`` when nothing usable is stored."""
        raw = self._store.get(self._key)
        if raw is None:
            return None

        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning("Cached articles are not valid JSON; ignoring cache: %s", exc)
            return None

        if not isinstance(payload, list) or not all(isinstance(item, dict) for item in payload):
            logger.warning("Cached articles must be a JSON array of objects; ignoring cache")
            return None

        articles = [ArticleRecord.from_dict(item) for item in payload]
        logger.info("Loaded %d cached articles", len(articles))
        return articles

    def clear(self) -> None:
        self._store.delete(self._key)


class ThemePreference:
    """Dark-mode flag stored as ``"true"``/``"false"``."""

    def __init__(self, store: KeyValueStore, key: str = DARK_MODE_KEY):
        self._store = store
        self._key = key

    def is_dark(self) -> bool:
        return self._store.get(self._key) == "true"

    def set_dark(self, enabled: bool) -> None:
        self._store.set(self._key, "true" if enabled else "false")

    def toggle(self) -> bool:
        enabled = not self.is_dark()
        self.set_dark(enabled)
        logger.info("Dark mode %s", "enabled" if enabled else "disabled")
        return enabled


class CategorySelection:
    """Last category the user asked for, so a refresh repeats it."""

    def __init__(self, store: KeyValueStore, key: str = SELECTED_CATEGORY_KEY):
        self._store = store
        self._key = key

    def get(self) -> Optional[str]:
        return self._store.get(self._key) or None

    def set(self, category: str) -> None:
        self._store.set(self._key, category)
        logger.debug("Remembered category '%s'", category)
