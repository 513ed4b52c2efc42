"""statement_ledger: turn bank-statement text into a deduplicated purchase ledger.

Pipeline
--------
- ``reflow``: stitch wrapped PDF text lines back together
- ``statement`` / ``transactions``: header fields and per-transaction blocks
- ``gazetteer`` / ``location``: country and city at the end of merchant names
- ``categorizer``: MCC and keyword rules
- ``ingest``: identity resolution and deduplication against the database

The database models and session helpers live in the separate ``db`` library.
"""

from __future__ import annotations

from .api import import_statement, parse_statement, parse_statement_lines
from .categorizer import MerchantCategorizer, category_name_for
from .errors import (
    BlockParseError,
    GazetteerLoadError,
    MissingNaturalKeyError,
    StatementLedgerError,
)
from .gazetteer import Gazetteer, GazetteerRecord, load_gazetteer
from .ingest import ingest_transactions
from .location import GeographicResolver
from .models import (
    DatePeriod,
    ImportResult,
    MerchantDetails,
    ParsedLocation,
    ParsedStatement,
    PaymentMethod,
    RawStatement,
    TransactionRecord,
    TransactionType,
)
from .reflow import reflow

__all__ = [
    "BlockParseError",
    "DatePeriod",
    "Gazetteer",
    "GazetteerLoadError",
    "GazetteerRecord",
    "GeographicResolver",
    "ImportResult",
    "MerchantCategorizer",
    "MerchantDetails",
    "MissingNaturalKeyError",
    "ParsedLocation",
    "ParsedStatement",
    "PaymentMethod",
    "RawStatement",
    "StatementLedgerError",
    "TransactionRecord",
    "TransactionType",
    "category_name_for",
    "import_statement",
    "ingest_transactions",
    "load_gazetteer",
    "parse_statement",
    "parse_statement_lines",
    "reflow",
]
