"""Feed retrieval through the content relay and item normalisation."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, List, Optional, Union
from urllib.parse import quote

import feedparser
import requests

from .models import (
    DEFAULT_DESCRIPTION,
    DEFAULT_LINK,
    DEFAULT_TITLE,
    FeedItem,
    SourceFailure,
)

logger = logging.getLogger(__name__)

DEFAULT_RELAY_URL = "https://api.allorigins.win/get?url="

# Characters left unescaped by JavaScript's encodeURIComponent.
_URI_COMPONENT_SAFE = "-_.!~*'()"

FetchOutcome = Union[str, SourceFailure]
ParseOutcome = Union[List[FeedItem], SourceFailure]


def encode_uri_component(value: str) -> str:
    return quote(value, safe=_URI_COMPONENT_SAFE)


class RelayFetcher:
    """Download raw feed markup via a relay returning ``{"contents": ...}``."""

    def __init__(
        self,
        relay_url: str = DEFAULT_RELAY_URL,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ):
        self.relay_url = relay_url
        self.timeout = timeout
        self._session = session or requests.Session()

    def request_url(self, source_url: str) -> str:
        return f"{self.relay_url}{encode_uri_component(source_url)}"

    def fetch(self, source_url: str) -> FetchOutcome:
        """Return the feed markup for ``source_url`` or a fetch failure."""
        logger.info("Fetching feed %s", source_url)
        try:
            response = self._session.get(
                self.request_url(source_url), timeout=self.timeout
            )
            response.raise_for_status()
            envelope = response.json()
        except requests.RequestException as exc:
            return _fetch_failure(source_url, str(exc))
        except ValueError as exc:
            return _fetch_failure(source_url, f"relay response is not JSON: {exc}")

        return _unwrap_envelope(source_url, envelope)


def _unwrap_envelope(source_url: str, envelope: Any) -> FetchOutcome:
    if not isinstance(envelope, dict):
        return _fetch_failure(source_url, "relay envelope is not a JSON object")

    contents = envelope.get("contents")
    if not isinstance(contents, str):
        return _fetch_failure(source_url, "relay envelope has no 'contents' text")

    logger.debug("Relay returned %d characters for %s", len(contents), source_url)
    return contents


def _fetch_failure(source_url: str, reason: str) -> SourceFailure:
    failure = SourceFailure(kind="fetch", url=source_url, reason=reason)
    logger.warning("Failed to fetch feed %s: %s", source_url, reason)
    return failure


def _text(entry: Any, *keys: str) -> Optional[str]:
    for key in keys:
        value = entry.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def parse_feed(raw_markup: str, source_url: str = "") -> ParseOutcome:
    """Parse RSS/Atom markup into feed items, preserving document order."""
    parsed = feedparser.parse(raw_markup.encode("utf-8"))

    if parsed.get("bozo"):
        exc = parsed.get("bozo_exception")
        if not isinstance(exc, feedparser.CharacterEncodingOverride):
            failure = SourceFailure(kind="parse", url=source_url, reason=str(exc))
            logger.warning("Failed to parse feed %s: %s", source_url, exc)
            return failure
        logger.debug("Encoding override while parsing %s: %s", source_url, exc)

    entries = parsed.get("entries") or []
    if not entries:
        logger.warning("No articles found in feed %s", source_url)
        return []

    items: List[FeedItem] = []
    for entry in entries:
        items.append(
            FeedItem(
                title=_text(entry, "title") or DEFAULT_TITLE,
                link=_text(entry, "link") or DEFAULT_LINK,
                description=_text(entry, "summary", "description")
                or DEFAULT_DESCRIPTION,
                pub_date=_text(entry, "published", "updated") or _now_iso(),
            )
        )

    logger.info("Collected %d items from feed %s", len(items), source_url)
    return items
