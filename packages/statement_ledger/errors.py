"""Exception types raised by ``statement_ledger``.

Only two conditions are fatal: a gazetteer that cannot be loaded at startup
and a record without a required natural key during ingestion. Block-level
parse failures are raised and caught inside the transaction extractor.
"""

from __future__ import annotations


class StatementLedgerError(Exception):
    """Base class for errors raised by this package."""


class BlockParseError(StatementLedgerError):
    """A single transaction block could not be parsed; the block is skipped."""

    def __init__(self, reason: str, block: str) -> None:
        super().__init__(f"{reason}: {block[:80]!r}")
        self.reason = reason
        self.block = block


class MissingNaturalKeyError(StatementLedgerError, ValueError):
    """An entity cannot be resolved because its natural key is blank."""

    def __init__(self, field: str) -> None:
        super().__init__(f"missing required field: {field}")
        self.field = field


class GazetteerLoadError(StatementLedgerError):
    """The offline place-name dataset could not be read."""


__all__ = [
    "BlockParseError",
    "GazetteerLoadError",
    "MissingNaturalKeyError",
    "StatementLedgerError",
]
