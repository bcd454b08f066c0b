"""Key-value stores holding the article cache slot and the theme flag."""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, Optional, Protocol

from sqlalchemy.engine import Engine

from . import db

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Minimal protocol for persisted string values."""

    def get(self, key: str) -> Optional[str]:
        """Return the value for ``key`` or ``None`` when absent."""

    def set(self, key: str, value: str) -> None:
        """Replace the value for ``key`` as a whole."""

    def delete(self, key: str) -> None:
        """Remove ``key`` if present."""


class MemoryStore:
    """In-process store, used by tests and ``memory`` storage."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._values: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._values[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._values.pop(key, None)


class JsonFileStore:
    """Store backed by a single JSON object on disk."""

    def __init__(self, path: str):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _load(self) -> Dict[str, str]:
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as exc:
            logger.warning("State file %s is not valid JSON; ignoring it: %s", self.path, exc)
            return {}

        if not isinstance(payload, dict):
            logger.warning("State file %s does not hold a JSON object; ignoring it", self.path)
            return {}
        return {str(key): value for key, value in payload.items() if isinstance(value, str)}

    def _dump(self, values: Dict[str, str]) -> None:
        if self.path.parent and not self.path.parent.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)

        # Write to a sibling temp file and swap it in, so readers never see a partial file.
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(values, handle, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except Exception:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            values = self._load()
            values[key] = value
            self._dump(values)

    def delete(self, key: str) -> None:
        with self._lock:
            values = self._load()
            if values.pop(key, None) is not None:
                self._dump(values)


class DatabaseStore:
    """Store backed by the SQLAlchemy ``dashboard_state`` table."""

    def __init__(self, session_factory):
        self._session_factory = session_factory

    @classmethod
    def from_engine(cls, engine: Engine) -> "DatabaseStore":
        return cls(db.get_session_factory(engine))

    def get(self, key: str) -> Optional[str]:
        with self._session_factory() as session:
            return db.get_value(session, key)

    def set(self, key: str, value: str) -> None:
        with self._session_factory() as session:
            db.set_value(session, key, value)

    def delete(self, key: str) -> None:
        with self._session_factory() as session:
            db.delete_value(session, key)
