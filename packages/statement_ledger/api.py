"""Public entry points tying the parsing pipeline to ingestion.

Parsing is pure and needs no database; :func:`import_statement` runs inside a
caller-provided session so a whole statement is committed or rolled back as a
unit.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date

from sqlalchemy.orm import Session

from .categories import category_id_resolver
from .categorizer import MerchantCategorizer
from .ingest import ProgressCallback, ingest_transactions
from .location import GeographicResolver
from .models import ImportResult, ParsedStatement
from .reflow import split_lines
from .statement import extract_statement_fields
from .transactions import extract_transactions


def parse_statement_lines(lines: Sequence[str], *, today: date | None = None) -> ParsedStatement:
    statement = extract_statement_fields(lines, today=today)
    records, skipped = extract_transactions(lines)
    return ParsedStatement(statement=statement, transactions=tuple(records), skipped_blocks=skipped)


def parse_statement(text: str, *, today: date | None = None) -> ParsedStatement:
    """Parse the extracted text of one statement document."""

    return parse_statement_lines(split_lines(text), today=today)


def import_statement(
    session: Session,
    parsed: ParsedStatement,
    *,
    resolver: GeographicResolver,
    on_progress: ProgressCallback | None = None,
) -> ImportResult:
    """Ingest a parsed statement's purchases into the ledger."""

    categorizer = MerchantCategorizer(category_id_resolver(session))
    return ingest_transactions(
        session,
        parsed.transactions,
        account_number=parsed.statement.account_number,
        account_currency=parsed.statement.currency,
        resolver=resolver,
        categorizer=categorizer,
        on_progress=on_progress,
    )


__all__ = ["import_statement", "parse_statement", "parse_statement_lines"]
