"""Feed source registry loaded from OPML."""

from __future__ import annotations

import logging
from importlib import resources
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple
from xml.etree import ElementTree as ET

from .models import FeedSource

logger = logging.getLogger(__name__)

ALL_CATEGORIES = "all"
DEFAULT_FEEDS_RESOURCE = "feeds.opml"


class FeedRegistry:
    """Ordered mapping of category name to its feed sources."""

    def __init__(self, categories: Mapping[str, Sequence[FeedSource]]):
        self._categories: Dict[str, Tuple[FeedSource, ...]] = {
            name: tuple(sources) for name, sources in categories.items()
        }
        if ALL_CATEGORIES in self._categories:
            raise ValueError(f"'{ALL_CATEGORIES}' is reserved and cannot be a category name.")

    def __len__(self) -> int:
        return sum(len(sources) for sources in self._categories.values())

    def __contains__(self, category: object) -> bool:
        return category in self._categories

    def categories(self) -> List[str]:
        """Return category names in declaration order."""
        return list(self._categories)

    def sources(self, category: str) -> Tuple[FeedSource, ...]:
        return self._categories.get(category, ())

    def resolve(self, selector: str) -> List[Tuple[str, FeedSource]]:
        """Return (category, source) pairs for a category name or ``all``."""
        if selector == ALL_CATEGORIES:
            return [
                (category, source)
                for category, sources in self._categories.items()
                for source in sources
            ]

        if selector not in self._categories:
            logger.warning("Unknown category '%s'; no feeds to fetch", selector)
            return []

        return [(selector, source) for source in self._categories[selector]]


def _parse_opml(root: ET.Element, origin: str) -> FeedRegistry:
    body = root.find("body")
    if body is None:
        raise ValueError(f"{origin} is missing the <body> section.")

    categories: Dict[str, List[FeedSource]] = {}

    def walk(outline: ET.Element, current_category: Optional[str]) -> None:
        title = outline.attrib.get("title") or outline.attrib.get("text")
        feed_url = outline.attrib.get("xmlUrl")
        outline_type = outline.attrib.get("type")

        if outline_type == "rss" and feed_url:
            category = current_category or "uncategorized"
            categories.setdefault(category, []).append(
                FeedSource(url=feed_url, name=title or feed_url)
            )
            logger.debug("Registered feed '%s' (category='%s')", feed_url, category)
            return

        # Nested folders stay in their top-level category.
        next_category = current_category or title
        for child in outline.findall("outline"):
            walk(child, next_category)

    for outline in body.findall("outline"):
        if outline.attrib.get("type") == "rss":
            walk(outline, None)
        else:
            name = outline.attrib.get("title") or outline.attrib.get("text")
            if name:
                categories.setdefault(name, [])
            walk(outline, name)

    registry = FeedRegistry(categories)
    logger.info(
        "Loaded %d feed endpoints in %d categories from %s",
        len(registry),
        len(registry.categories()),
        origin,
    )
    return registry


def load_registry(path: str) -> FeedRegistry:
    """Parse an OPML file into a registry."""
    logger.info("Loading feed configuration from %s", path)
    tree = ET.parse(path)
    return _parse_opml(tree.getroot(), path)


def load_default_registry() -> FeedRegistry:
    """Return the registry bundled with the package."""
    text = (resources.files(__package__) / DEFAULT_FEEDS_RESOURCE).read_text(
        encoding="utf-8"
    )
    return _parse_opml(ET.fromstring(text), DEFAULT_FEEDS_RESOURCE)


def build_registry(entries: Mapping[str, Iterable[Tuple[str, str]]]) -> FeedRegistry:
    """Build a registry from ``{category: [(url, name), ...]}``."""
    return FeedRegistry(
        {
            category: [FeedSource(url=url, name=name) for url, name in sources]
            for category, sources in entries.items()
        }
    )
