"""Database layer for persisted dashboard state."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, DateTime, String, Text, create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class StateModel(Base):
    """One key-value slot of dashboard state."""

    __tablename__ = "dashboard_state"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))


def init_engine(connection_string: Optional[str]) -> Optional[Engine]:
    """Initialize the database engine."""
    if not connection_string:
        return None

    logger.info("Initializing database connection: %s", connection_string)
    engine = create_engine(connection_string)
    Base.metadata.create_all(engine)
    return engine


def get_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Return a session factory for the given engine."""
    return sessionmaker(bind=engine)


def get_value(session: Session, key: str) -> Optional[str]:
    """Return the stored value for ``key``."""
    stmt = select(StateModel).where(StateModel.key == key)
    result = session.execute(stmt).scalar_one_or_none()
    if not result:
        return None
    return result.value


def set_value(session: Session, key: str, value: str) -> None:
    """Insert or replace the value stored under ``key``."""
    stmt = select(StateModel).where(StateModel.key == key)
    existing = session.execute(stmt).scalar_one_or_none()

    if existing:
        existing.value = value
        existing.updated_at = datetime.now(timezone.utc)
    else:
        session.add(
            StateModel(key=key, value=value, updated_at=datetime.now(timezone.utc))
        )

    try:
        session.commit()
    except Exception:
        session.rollback()
        raise


def delete_value(session: Session, key: str) -> None:
    stmt = select(StateModel).where(StateModel.key == key)
    existing = session.execute(stmt).scalar_one_or_none()
    if existing is None:
        return

    session.delete(existing)
    try:
        session.commit()
    except Exception:
        session.rollback()
        raise
