"""SQLAlchemy engine, declarative base and session factory.

Provides:
- Base: Declarative base shared by every local table
- get_engine(): Lazily created engine singleton
- session_factory(): Yields a Session bound to the engine
- init_db() / close_db(): Table creation and engine disposal
- SQLite connect hook that switches on foreign key enforcement
"""

from __future__ import annotations

from collections.abc import Generator
from typing import Any

from sqlalchemy import Engine, MetaData, create_engine, event
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from src.crm_sync.config import get_settings

# ── Module-level engine (lazy init) ────────────────────────────────────────

_engine: Engine | None = None
_sessionmaker: sessionmaker[Session] | None = None

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


def _enable_sqlite_foreign_keys(engine: Engine) -> None:
    """SQLite ignores FOREIGN KEY clauses unless asked per connection."""

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn: Any, connection_record: Any) -> None:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def build_engine(url: str, **kwargs: Any) -> Engine:
    """Create an engine for url, applying dialect-specific setup."""
    engine = create_engine(url, echo=False, **kwargs)
    if engine.dialect.name == "sqlite":
        _enable_sqlite_foreign_keys(engine)
    return engine


def get_engine() -> Engine:
    """Get or create the engine singleton."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = build_engine(settings.DATABASE_URL)
    return _engine


# ── Declarative Base ────────────────────────────────────────────────────────


class Base(DeclarativeBase):
    """Base class for all local CRM tables."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)


# ── Session Factory ─────────────────────────────────────────────────────────


def get_sessionmaker() -> sessionmaker[Session]:
    global _sessionmaker
    if _sessionmaker is None:
        _sessionmaker = sessionmaker(bind=get_engine(), expire_on_commit=False)
    return _sessionmaker


def session_factory() -> Generator[Session, None, None]:
    """Yield a Session for the configured database, closing it afterwards."""
    with get_sessionmaker()() as session:
        yield session


# ── Database Initialization ─────────────────────────────────────────────────


def init_db(engine: Engine | None = None) -> None:
    """Create all tables that don't exist yet."""
    # Models register themselves on Base.metadata at import time
    import src.crm_sync.crm.models  # noqa: F401
    import src.crm_sync.mapping.models  # noqa: F401

    Base.metadata.create_all(engine or get_engine())


def close_db() -> None:
    """Dispose of the engine and close all connections."""
    global _engine, _sessionmaker
    if _engine:
        _engine.dispose()
        _engine = None
        _sessionmaker = None
