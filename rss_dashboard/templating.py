"""Jinja2 environment for rss_dashboard templates."""

from __future__ import annotations

import re
from datetime import datetime
from email.utils import parsedate_to_datetime
from importlib import resources
from typing import Optional

from bs4 import BeautifulSoup
from jinja2 import Environment, FileSystemLoader, select_autoescape

EXCERPT_LENGTH = 180

_ENV: Environment | None = None


def _strip_html(raw_value: str) -> str:
    """Return text content extracted from HTML fragments."""
    soup = BeautifulSoup(raw_value, "html.parser")
    text = soup.get_text(separator=" ", strip=True)
    text = re.sub(r"\s+([.,;:!?])", r"\1", text)
    text = re.sub(r"\s{2,}", " ", text)
    return text.strip()


def _excerpt(value: str | None, limit: int = EXCERPT_LENGTH) -> str:
    """Plain-text card excerpt, cut at ``limit`` characters."""
    if not value:
        return ""
    text = _strip_html(value)
    if not text:
        return ""
    return text[:limit] + "..."


def parse_pub_date(value: str | None) -> Optional[datetime]:
    """Best-effort parse of RFC 822 or ISO-8601 publication dates."""
    if not value:
        return None
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        pass
    try:
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None


def _display_date(value: str | None) -> str:
    parsed = parse_pub_date(value)
    if parsed is None:
        return value or ""
    return parsed.strftime("%B %d, %Y")


def get_environment() -> Environment:
    """Return a cached Jinja environment configured for package templates."""
    global _ENV
    if _ENV is None:
        template_dir = resources.files(__package__) / "templates"
        loader = FileSystemLoader(str(template_dir))
        _ENV = Environment(
            loader=loader,
            autoescape=select_autoescape(["html", "xml", "html.j2"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        _ENV.filters["excerpt"] = _excerpt
        _ENV.filters["display_date"] = _display_date
    return _ENV
