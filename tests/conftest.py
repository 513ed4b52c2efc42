"""Pytest configuration for test isolation.

The CLI and ``db.client`` read ``DATABASE_URL`` and ``STATEMENT_LEDGER_*``
from the environment (possibly populated from a developer's ``.env``) and the
engine is a process-wide singleton. Each test starts with a clean environment
and no engine so tests never share a database by accident.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

import pytest
from db.client import reset_engine

from statement_ledger.gazetteer import Gazetteer, load_gazetteer
from statement_ledger.location import GeographicResolver

DATA_DIR = Path(__file__).resolve().parent / "data"


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for name in list(os.environ):
        if name == "DATABASE_URL" or name.startswith("STATEMENT_LEDGER_"):
            monkeypatch.delenv(name, raising=False)
    reset_engine()
    yield
    reset_engine()


@pytest.fixture(scope="session")
def data_dir() -> Path:
    return DATA_DIR


@pytest.fixture(scope="session")
def gazetteer() -> Gazetteer:
    return load_gazetteer(DATA_DIR / "cities_sample.txt")


@pytest.fixture()
def resolver(gazetteer: Gazetteer) -> GeographicResolver:
    return GeographicResolver(gazetteer)
