"""Command-line interface for the rss_dashboard application."""

from __future__ import annotations

import argparse
import dataclasses
import logging
import pprint
from pathlib import Path
from typing import List, Optional

from .app import build_dashboard
from .config import AppConfig, parse_app_config
from .renderers import RENDERERS

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser."""
    parser = argparse.ArgumentParser(
        description="Aggregate categorised RSS feeds into a dashboard."
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to the configuration XML file. Built-in defaults apply when omitted.",
    )

    # What to show
    parser.add_argument(
        "--category",
        default=None,
        help="Fetch this category ('all' for every category) instead of showing the cache.",
    )
    parser.add_argument(
        "--refresh",
        action="store_true",
        help="Fetch the last selected category even when cached articles exist.",
    )
    parser.add_argument(
        "--toggle-theme",
        action="store_true",
        help="Flip and persist the dark mode preference.",
    )
    parser.add_argument(
        "--list-categories",
        action="store_true",
        help="Print the configured categories and exit.",
    )

    # Output
    parser.add_argument(
        "--format",
        choices=sorted(RENDERERS),
        default="text",
        help="Output format.",
    )
    parser.add_argument(
        "--output",
        metavar="PATH",
        help="Write the rendered dashboard to PATH instead of stdout.",
    )

    # Overrides for logging/debugging
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (e.g. DEBUG, INFO, WARNING). Overrides config.",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Optional path to a log file. Overrides config.",
    )

    return parser


def configure_logging(level_name: str, log_file: Optional[str] = None) -> None:
    """Initialise logging according to options."""
    log_level = getattr(logging, level_name.upper(), None)
    if not isinstance(log_level, int):
        raise ValueError(f"Unsupported log level: {level_name}")

    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    root_logger.setLevel(log_level)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    root_logger.addHandler(stream_handler)

    if log_file:
        log_path = Path(log_file)
        if log_path.parent and not log_path.parent.exists():
            log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
        logger.debug(
            "Logger initialised with level %s and file output to %s",
            level_name.upper(),
            log_path,
        )
    else:
        logger.debug(
            "Logger initialised with console output at level %s", level_name.upper()
        )


def _write_output(path: str, content: str) -> None:
    location = Path(path)
    if location.parent and not location.parent.exists():
        location.parent.mkdir(parents=True, exist_ok=True)
    location.write_text(content, encoding="utf-8")
    logger.info("Wrote dashboard to %s", location)


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        app_config = parse_app_config(args.config) if args.config else AppConfig()

        # Determine logging settings (CLI overrides Config)
        log_level = args.log_level or app_config.logging.level
        log_file = args.log_file or app_config.logging.file

        configure_logging(log_level, log_file)

        config_dict = dataclasses.asdict(app_config)
        if config_dict["storage"].get("connection_string"):
            config_dict["storage"]["connection_string"] = "***MASKED***"
        logger.info("Active Configuration:\n%s", pprint.pformat(config_dict))

        dashboard = build_dashboard(app_config)

        if args.list_categories:
            print("\n".join(dashboard.categories()))
            return 0

        if args.toggle_theme:
            dashboard.toggle_theme()

        if args.category:
            view = dashboard.select_category(args.category)
        elif args.refresh:
            view = dashboard.refresh()
        else:
            view = dashboard.startup()

        rendered = RENDERERS[args.format](view)
    except ValueError as exc:
        parser.error(str(exc))
    except (RuntimeError, FileNotFoundError) as exc:
        logger.error("%s", exc)
        return 1
    except Exception:  # noqa: BLE001
        logger.exception("Unexpected error during execution.")
        return 1

    if args.output:
        _write_output(args.output, rendered)
    else:
        print(rendered)
    return 0
