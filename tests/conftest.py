import threading

import pytest
import requests

from rss_dashboard.cache import ArticleCache, ThemePreference
from rss_dashboard.models import SourceFailure
from rss_dashboard.registry import build_registry
from rss_dashboard.storage import MemoryStore


def rss_document(*items: str) -> str:
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<rss version="2.0"><channel><title>Example</title>'
        + "".join(items)
        + "</channel></rss>"
    )


def rss_item(title, link, description="Description", pub_date="Mon, 01 Jan 2024 10:00:00 GMT"):
    parts = []
    if title is not None:
        parts.append(f"<title>{title}</title>")
    if link is not None:
        parts.append(f"<link>{link}</link>")
    if description is not None:
        parts.append(f"<description>{description}</description>")
    if pub_date is not None:
        parts.append(f"<pubDate>{pub_date}</pubDate>")
    return "<item>" + "".join(parts) + "</item>"


class FakeResponse:
    def __init__(self, payload=None, status_code=200, invalid_json=False):
        self.payload = payload
        self.status_code = status_code
        self.invalid_json = invalid_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")

    def json(self):
        if self.invalid_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self.payload


class FakeSession:
    """Records requested URLs and replays canned responses or errors."""

    def __init__(self, response):
        self.response = response
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


class StubFetcher:
    """Maps feed URLs to markup, a SourceFailure, or an exception to raise."""

    def __init__(self, outcomes, delays=None):
        self.outcomes = outcomes
        self.delays = delays or {}
        self.calls = []
        self._lock = threading.Lock()

    def fetch(self, source_url):
        with self._lock:
            self.calls.append(source_url)
        delay = self.delays.get(source_url)
        if delay is not None:
            delay()
        outcome = self.outcomes.get(
            source_url, SourceFailure(kind="fetch", url=source_url, reason="unknown feed")
        )
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def cache(store):
    return ArticleCache(store)


@pytest.fixture
def theme(store):
    return ThemePreference(store)


@pytest.fixture
def registry():
    return build_registry(
        {
            "tech": [
                ("https://tech.example.com/a.xml", "Tech A"),
                ("https://tech.example.com/b.xml", "Tech B"),
            ],
            "art": [("https://art.example.com/feed", "Art Feed")],
            "empty": [],
        }
    )
