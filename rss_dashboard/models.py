"""Shared data models for rss_dashboard."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

DEFAULT_TITLE = "No Title"
DEFAULT_LINK = "#"
DEFAULT_DESCRIPTION = "No Description"


@dataclass(frozen=True)
class FeedSource:
    """A single syndication endpoint and its display name."""

    url: str
    name: str


@dataclass(frozen=True)
class FeedItem:
    """Normalised item parsed from a feed, not yet tagged with its origin."""

    title: str
    link: str
    description: str
    pub_date: str


@dataclass(frozen=True)
class ArticleRecord:
    """Article as cached and displayed on the dashboard."""

    title: str
    link: str
    description: str
    pub_date: str
    category: str
    feed_name: str

    @classmethod
    def from_item(cls, item: FeedItem, category: str, feed_name: str) -> "ArticleRecord":
        return cls(
            title=item.title,
            link=item.link,
            description=item.description,
            pub_date=item.pub_date,
            category=category,
            feed_name=feed_name,
        )

    def to_dict(self) -> Dict[str, str]:
        """Return the JSON layout used by the cache slot."""
        return {
            "title": self.title,
            "link": self.link,
            "description": self.description,
            "pubDate": self.pub_date,
            "category": self.category,
            "feedName": self.feed_name,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ArticleRecord":
        return cls(
            title=str(data.get("title") or DEFAULT_TITLE),
            link=str(data.get("link") or DEFAULT_LINK),
            description=str(data.get("description") or DEFAULT_DESCRIPTION),
            pub_date=str(data.get("pubDate") or ""),
            category=str(data.get("category") or ""),
            feed_name=str(data.get("feedName") or ""),
        )


@dataclass(frozen=True)
class SourceFailure:
    """Explicit failure value for one feed source."""

    kind: str  # "fetch" or "parse"
    url: str
    reason: str

    def __str__(self) -> str:
        return f"{self.kind} failure for {self.url}: {self.reason}"


@dataclass
class SourceResult:
    """Outcome of fetching and parsing one source during an aggregation."""

    category: str
    source: FeedSource
    items: List[FeedItem] = field(default_factory=list)
    failure: Optional[SourceFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None
