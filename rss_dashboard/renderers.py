"""Rendering helpers for dashboard outputs."""

from __future__ import annotations

import datetime
import json

from .app import DashboardView
from .templating import get_environment


def build_dashboard_html(view: DashboardView) -> str:
    """Render the dashboard page using the Jinja2 template."""
    env = get_environment()
    template = env.get_template("dashboard.html.j2")
    today = datetime.date.today().strftime("%B %d, %Y")
    return template.render(view=view, date=today)


def build_dashboard_text(view: DashboardView) -> str:
    """Render the plain-text listing using the Jinja2 template."""
    env = get_environment()
    template = env.get_template("dashboard.txt.j2")
    return template.render(view=view)


def build_dashboard_json(view: DashboardView) -> str:
    return json.dumps(
        [article.to_dict() for article in view.articles], indent=2, ensure_ascii=False
    )


RENDERERS = {
    "html": build_dashboard_html,
    "text": build_dashboard_text,
    "json": build_dashboard_json,
}
