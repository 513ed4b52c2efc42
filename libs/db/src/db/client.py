"""Engine and session management for the ledger database.

A process talks to one database. The first :func:`get_engine` call binds the
client to its ``database_url`` argument (or ``DATABASE_URL``); later calls must
agree on the URL. Tests switch databases through :func:`reset_engine`.

    from db.client import session_scope

    with session_scope() as session:
        ingest_transactions(session, records, ...)
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker


@dataclass(frozen=True)
class _Binding:
    url: str
    engine: Engine
    sessions: sessionmaker[Session]


_binding: _Binding | None = None


def resolve_database_url(override: str | None = None) -> str:
    url = override or os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is not set; pass database_url or set it in .env")
    return url


def _sqlite_on_connect(dbapi_conn, _record) -> None:  # pragma: no cover - driver hook
    cursor = dbapi_conn.cursor()
    try:
        cursor.execute("PRAGMA foreign_keys = ON")
    finally:
        cursor.close()


def _bind(url: str) -> _Binding:
    engine = create_engine(url, pool_pre_ping=True)
    if engine.dialect.name == "sqlite":
        # SQLite leaves foreign keys unenforced per connection unless asked.
        event.listen(engine, "connect", _sqlite_on_connect)
    return _Binding(url, engine, sessionmaker(bind=engine, expire_on_commit=False))


def get_engine(*, database_url: str | None = None) -> Engine:
    """Return the process-wide engine, binding it on first use."""

    global _binding
    url = resolve_database_url(database_url)
    if _binding is None:
        _binding = _bind(url)
    elif _binding.url != url:
        raise RuntimeError(
            "database client is bound to a different URL; call reset_engine() before switching"
        )
    return _binding.engine


def get_session(*, database_url: str | None = None) -> Session:
    get_engine(database_url=database_url)
    assert _binding is not None
    return _binding.sessions()


@contextmanager
def session_scope(*, database_url: str | None = None) -> Iterator[Session]:
    """Yield a session that commits on success and rolls back on any error.

    One scope is one ingestion batch, so a failed statement leaves nothing
    behind.
    """

    with get_session(database_url=database_url) as session:
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        session.commit()


def reset_engine() -> None:
    """Dispose the current engine so the next call may bind another URL."""

    global _binding
    if _binding is not None:
        _binding.engine.dispose()
        _binding = None


__all__ = [
    "get_engine",
    "get_session",
    "reset_engine",
    "resolve_database_url",
    "session_scope",
]
