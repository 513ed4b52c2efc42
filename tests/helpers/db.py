"""DB helpers for tests: bootstrap a temporary SQLite ledger database."""

from __future__ import annotations

from pathlib import Path

from db import Base
from db.client import get_engine, session_scope
from sqlalchemy import select
from sqlalchemy.orm import Session

from statement_ledger.categories import seed_default_categories


def bootstrap_sqlite_db(db_file: Path, *, seed_categories: bool = True) -> str:
    """Create a SQLite database file with the full schema and return its URL.

    A file-backed database lets every SQLAlchemy connection see the same
    state (in-memory SQLite databases are per-connection).
    """

    url = f"sqlite+pysqlite:///{db_file}"
    db_file.parent.mkdir(parents=True, exist_ok=True)
    Base.metadata.create_all(bind=get_engine(database_url=url))
    if seed_categories:
        with session_scope(database_url=url) as session:
            seed_default_categories(session)
    return url


def all_rows(session: Session, model) -> list:
    """Every row of ``model`` ordered by primary key."""

    return list(session.scalars(select(model).order_by(model.id)))
