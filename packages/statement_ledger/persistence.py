# ruff: noqa: I001
"""Persistence integration for statement_ledger.

Functions here read and write the shared ledger database owned by ``libs/db``
using the ORM models in ``db.models.ledger``. They never commit: the caller
owns the transaction boundary (one ``db.client.session_scope`` per ingestion
batch).

Scope:
- Find-or-create of accounts, banks and merchants by natural key. Inserts use
  ``ON CONFLICT DO NOTHING`` followed by a select so a concurrent writer that
  won the race is simply picked up.
- Deduplication lookups and append-only transaction inserts.
- Merchant categorization maintenance.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from db.models.ledger import Account, Bank, LedgerTransaction, Merchant
from .categorizer import MerchantCategorizer
from .errors import MissingNaturalKeyError
from .location import GeographicResolver
from .logging_setup import get_logger
from .models import UNKNOWN, MerchantDetails, TransactionRecord
from .transactions import normalize_bank_key

logger = get_logger("statement_ledger.persistence")

type DedupKey = tuple[int, int, str]


def insert_for(session: Session, model: Any):
    """Dialect-specific ``INSERT`` supporting ``on_conflict_do_nothing``."""

    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return pg_insert(model)
    if dialect == "sqlite":
        return sqlite_insert(model)
    raise RuntimeError(f"unsupported database dialect: {dialect}")


# ---- Hashing ------------------------------------------------------------------


def _money(value: Decimal | None) -> str:
    return f"{value:.2f}" if value is not None else ""


def compute_transaction_hash(record: TransactionRecord) -> str:
    """SHA-256 over the transaction's content fields.

    Fields: date, amount, transaction amount and currency, bank name, payment
    method and description, absent ones as empty strings. They are serialized
    as a JSON array so field boundaries stay unambiguous.
    """

    details = record.details
    payload = [
        record.date.isoformat(),
        _money(record.amount),
        _money(record.transaction_amount),
        record.transaction_currency or "",
        details.bank_name or "",
        details.payment_label or "",
        record.description,
    ]
    data = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


# ---- Entities -----------------------------------------------------------------


def find_or_create_account(
    session: Session, account_number: str | None, currency: str, *, lock: bool = True
) -> int:
    """Return the id of the account with this exact number, creating it if needed.

    With ``lock`` the account row is selected ``FOR UPDATE`` so concurrent
    imports into the same account serialize until the caller commits.
    """

    number = (account_number or "").strip()
    if not number or number == UNKNOWN:
        raise MissingNaturalKeyError("account_number")

    stmt = (
        insert_for(session, Account)
        .values(account_number=number, currency=currency)
        .on_conflict_do_nothing(index_elements=[Account.account_number])
    )
    if session.execute(stmt).rowcount:
        logger.info("Created account %s (%s)", number, currency)

    query = select(Account.id).where(Account.account_number == number)
    if lock:
        query = query.with_for_update()
    return session.execute(query).scalar_one()


def find_or_create_bank(session: Session, name: str | None) -> int | None:
    """Resolve a bank by whitespace- and case-insensitive name.

    The stored ``name`` keeps the spelling of the first insert.
    """

    if not name or not name.strip():
        return None
    key = normalize_bank_key(name)
    stmt = (
        insert_for(session, Bank)
        .values(name=name.strip(), name_key=key)
        .on_conflict_do_nothing(index_elements=[Bank.name_key])
    )
    if session.execute(stmt).rowcount:
        logger.info("Created bank %r", name.strip())
    return session.execute(select(Bank.id).where(Bank.name_key == key)).scalar_one()


def find_or_create_merchant(
    session: Session,
    details: MerchantDetails,
    *,
    resolver: GeographicResolver,
    categorizer: MerchantCategorizer,
) -> int | None:
    """Resolve a merchant by exact name.

    A new merchant is categorized and geo-resolved once, at creation; an
    uncategorized one is flagged ``needs_categorization``.
    """

    name = details.merchant_name
    if not name:
        return None
    existing = session.execute(select(Merchant.id).where(Merchant.name == name)).scalar()
    if existing is not None:
        return existing

    category_id = categorizer.auto_categorize(name, details.mcc_code)
    location = resolver.resolve(details.location_source)
    stmt = (
        insert_for(session, Merchant)
        .values(
            name=name,
            mcc_code=details.mcc_code,
            category_id=category_id,
            needs_categorization=category_id is None,
            country_code=location.country_code,
            city=location.city,
        )
        .on_conflict_do_nothing(index_elements=[Merchant.name])
    )
    if session.execute(stmt).rowcount:
        logger.info(
            "Created merchant %r (category_id=%s, country=%s, city=%s)",
            name,
            category_id,
            location.country_code,
            location.city,
        )
    return session.execute(select(Merchant.id).where(Merchant.name == name)).scalar_one()


# ---- Transactions -------------------------------------------------------------


def existing_dedup_keys(
    session: Session, account_ids: Iterable[int], hashes: Iterable[str]
) -> set[DedupKey]:
    """Stored ``(account_id, daily_sequence, hash)`` triples among the given ids/hashes."""

    account_ids = set(account_ids)
    hashes = set(hashes)
    if not account_ids or not hashes:
        return set()
    rows = session.execute(
        select(
            LedgerTransaction.account_id,
            LedgerTransaction.daily_sequence,
            LedgerTransaction.transaction_hash,
        ).where(
            LedgerTransaction.account_id.in_(account_ids),
            LedgerTransaction.transaction_hash.in_(hashes),
        )
    )
    return {(r.account_id, r.daily_sequence, r.transaction_hash) for r in rows}


def insert_transaction(session: Session, values: Mapping[str, Any]) -> bool:
    """Append one transaction row; ``False`` when the dedup key already exists."""

    stmt = (
        insert_for(session, LedgerTransaction)
        .values(**values)
        .on_conflict_do_nothing(
            index_elements=[
                LedgerTransaction.account_id,
                LedgerTransaction.daily_sequence,
                LedgerTransaction.transaction_hash,
            ]
        )
    )
    return session.execute(stmt).rowcount == 1


# ---- Merchant categorization ------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CategorizationSummary:
    processed: int
    categorized: int

    @property
    def remaining(self) -> int:
        return self.processed - self.categorized


def merchants_needing_categorization(session: Session) -> list[Merchant]:
    return list(
        session.scalars(
            select(Merchant).where(Merchant.needs_categorization.is_(True)).order_by(Merchant.name)
        )
    )


def update_merchant_category(session: Session, merchant_id: int, category_id: int) -> bool:
    """Assign a category and clear the ``needs_categorization`` flag."""

    result = session.execute(
        update(Merchant)
        .where(Merchant.id == merchant_id)
        .values(category_id=category_id, needs_categorization=False, updated_at=func.now())
    )
    return result.rowcount == 1


def auto_categorize_pending_merchants(
    session: Session, categorizer: MerchantCategorizer
) -> CategorizationSummary:
    """Re-run the rule tables over every merchant still flagged for review."""

    pending = merchants_needing_categorization(session)
    categorized = 0
    for merchant in pending:
        category_id = categorizer.auto_categorize(merchant.name, merchant.mcc_code)
        if category_id is None:
            continue
        update_merchant_category(session, merchant.id, category_id)
        categorized += 1
    summary = CategorizationSummary(processed=len(pending), categorized=categorized)
    logger.info(
        "Auto-categorized %d of %d pending merchants", summary.categorized, summary.processed
    )
    return summary


def list_accounts(session: Session) -> list[Account]:
    return list(session.scalars(select(Account).order_by(Account.account_number)))


def list_banks(session: Session) -> list[Bank]:
    return list(session.scalars(select(Bank).order_by(Bank.name_key)))


__all__ = [
    "CategorizationSummary",
    "DedupKey",
    "auto_categorize_pending_merchants",
    "compute_transaction_hash",
    "existing_dedup_keys",
    "find_or_create_account",
    "find_or_create_bank",
    "find_or_create_merchant",
    "insert_for",
    "insert_transaction",
    "list_accounts",
    "list_banks",
    "merchants_needing_categorization",
    "update_merchant_category",
]
