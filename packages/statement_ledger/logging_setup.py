"""Logging setup for ``statement_ledger``.

Library modules ask for loggers through :func:`get_logger` and never attach
handlers themselves. The CLI calls :func:`configure_logging` once at startup,
which gives the ``statement_ledger`` logger a single stream handler. The level
comes from the argument, then ``STATEMENT_LEDGER_LOG_LEVEL``, then INFO.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

ROOT_LOGGER = "statement_ledger"
LEVEL_ENV_VAR = "STATEMENT_LEDGER_LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_CONFIGURED = False


def level_from(value: int | str | None) -> int | None:
    """Numeric level for an int, digit string or level name; ``None`` if unknown."""

    if value is None:
        return None
    if isinstance(value, int):
        return value
    text = value.strip().upper()
    if text.isdigit():
        return int(text)
    level = logging.getLevelName(text)
    return level if isinstance(level, int) else None


def resolve_level(level: int | str | None = None) -> int:
    for candidate in (level, os.getenv(LEVEL_ENV_VAR)):
        resolved = level_from(candidate)
        if resolved is not None:
            return resolved
    return logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """Attach the package's stream handler; later calls are no-ops.

    ``stream`` defaults to ``sys.stderr`` so stdout stays free for command
    output.
    """

    global _CONFIGURED
    pkg = logging.getLogger(ROOT_LOGGER)
    if _CONFIGURED:
        return pkg

    pkg.handlers[:] = [h for h in pkg.handlers if not isinstance(h, logging.NullHandler)]
    resolved = resolve_level(level)
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))
    pkg.addHandler(handler)
    pkg.setLevel(resolved)
    pkg.propagate = False

    _CONFIGURED = True
    return pkg


def get_logger(name: str) -> logging.Logger:
    """Logger for ``name``; silent until :func:`configure_logging` runs."""

    pkg = logging.getLogger(ROOT_LOGGER)
    if not _CONFIGURED and not pkg.handlers:
        pkg.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "level_from", "resolve_level"]
