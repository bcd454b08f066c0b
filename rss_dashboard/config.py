"""Configuration loading for the dashboard."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
from xml.etree import ElementTree as ET

from .feeds import DEFAULT_RELAY_URL
from .registry import ALL_CATEGORIES

logger = logging.getLogger(__name__)

STORAGE_BACKENDS = ("file", "database", "memory")


@dataclass
class StorageConfig:
    backend: str = "file"
    path: str = "state.json"
    connection_string: Optional[str] = None


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: Optional[str] = None


@dataclass
class AppConfig:
    feeds_file: Optional[str] = None
    relay_url: str = DEFAULT_RELAY_URL
    timeout: Optional[float] = None
    concurrency: int = 10
    default_category: str = ALL_CATEGORIES
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _resolve_path(base_path: Path, target_path: str) -> str:
    """Resolve a path relative to the base config file if it's not absolute."""
    target = Path(target_path)
    if target.is_absolute():
        return str(target)
    return str((base_path.parent / target).resolve())


def parse_app_config(path: str) -> AppConfig:
    """Parse the main application configuration XML."""
    config_path = Path(path).resolve()
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    logger.info("Loading application configuration from %s", config_path)
    tree = ET.parse(config_path)
    root = tree.getroot()

    config = AppConfig()

    feeds_text = root.findtext("feeds")
    if feeds_text and feeds_text.strip():
        config.feeds_file = _resolve_path(config_path, feeds_text.strip())

    relay = root.findtext("relay")
    if relay and relay.strip():
        config.relay_url = relay.strip()

    timeout_text = root.findtext("timeout")
    if timeout_text and timeout_text.strip():
        config.timeout = float(timeout_text)
        if config.timeout <= 0:
            raise ValueError("<timeout> must be positive.")

    config.concurrency = int(root.findtext("concurrency", "10"))
    if config.concurrency < 1:
        raise ValueError("<concurrency> must be at least 1.")

    default_category = root.findtext("default-category")
    if default_category and default_category.strip():
        config.default_category = default_category.strip()

    # Storage
    storage_node = root.find("storage")
    if storage_node is not None:
        backend = storage_node.findtext("backend", "file").strip().lower()
        if backend not in STORAGE_BACKENDS:
            raise ValueError(
                f"Unsupported storage backend '{backend}'; "
                f"expected one of {', '.join(STORAGE_BACKENDS)}."
            )
        config.storage.backend = backend

        state_path = storage_node.findtext("path")
        if state_path and state_path.strip():
            config.storage.path = _resolve_path(config_path, state_path.strip())
        else:
            config.storage.path = _resolve_path(config_path, config.storage.path)

        config.storage.connection_string = storage_node.findtext("connection-string")
        if backend == "database" and not config.storage.connection_string:
            raise ValueError("Database storage requires <connection-string>.")
    else:
        config.storage.path = _resolve_path(config_path, config.storage.path)

    # Logging
    log_node = root.find("logging")
    if log_node is not None:
        config.logging.level = log_node.findtext("level", "INFO")
        log_file = log_node.findtext("file")
        if log_file:
            config.logging.file = _resolve_path(config_path, log_file)

    return config
