"""Runtime settings read from the environment (after ``.env`` loading)."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, ConfigDict, field_validator

DEFAULT_GAZETTEER_PATH = Path("data") / "cities1000.txt"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _env_flag(raw: str | None, *, default: bool) -> bool:
    if raw is None:
        return default
    v = raw.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    return default


def _env_int(raw: str | None, *, default: int) -> int:
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


class LedgerSettings(BaseModel):
    """Settings for the CLI and ingestion workflows.

    Environment variables
    ---------------------
    - ``DATABASE_URL``: SQLAlchemy URL; optional until a command touches the DB.
    - ``STATEMENT_LEDGER_GAZETTEER``: path to a GeoNames ``cities1000.txt``.
    - ``STATEMENT_LEDGER_FUZZY_CITIES``: ``0`` disables the fuzzy city fallback.
    - ``STATEMENT_LEDGER_MAX_WORKERS``: parallelism for parsing several files.
    """

    model_config = ConfigDict(strict=True, extra="forbid", str_strip_whitespace=True)

    database_url: str | None = None
    gazetteer_path: Path = DEFAULT_GAZETTEER_PATH
    fuzzy_cities: bool = True
    max_parse_workers: int = 4

    @field_validator("database_url")
    @classmethod
    def _blank_url_is_unset(cls, v: str | None) -> str | None:
        return v or None

    @field_validator("max_parse_workers")
    @classmethod
    def _clamp_workers(cls, v: int) -> int:
        return max(1, min(v, 32))

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> LedgerSettings:
        env = os.environ if environ is None else environ
        gazetteer = env.get("STATEMENT_LEDGER_GAZETTEER")
        return cls(
            database_url=env.get("DATABASE_URL"),
            gazetteer_path=Path(gazetteer) if gazetteer else DEFAULT_GAZETTEER_PATH,
            fuzzy_cities=_env_flag(env.get("STATEMENT_LEDGER_FUZZY_CITIES"), default=True),
            max_parse_workers=_env_int(env.get("STATEMENT_LEDGER_MAX_WORKERS"), default=4),
        )


__all__ = ["DEFAULT_GAZETTEER_PATH", "LedgerSettings"]
