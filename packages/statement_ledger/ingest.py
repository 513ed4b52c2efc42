"""Identity resolution and deduplication for parsed transactions.

A stored transaction is identified by ``(account_id, daily_sequence, hash)``.
The hash covers the transaction's content and the daily sequence is its
position among the same account's transactions on the same date, in input
order. Two genuinely identical purchases on one day therefore share a hash
but not a sequence, and both are kept; re-importing a statement reproduces
the same triples and imports nothing.

Precondition: the source lists same-day transactions in a stable
(chronological) order. Statements carry no time of day, so this cannot be
verified here.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Hashable, Iterable
from typing import Any

from sqlalchemy.orm import Session

from .categorizer import MerchantCategorizer
from .location import GeographicResolver
from .logging_setup import get_logger
from .models import ImportResult, TransactionRecord
from .persistence import (
    compute_transaction_hash,
    existing_dedup_keys,
    find_or_create_account,
    find_or_create_bank,
    find_or_create_merchant,
    insert_transaction,
)

logger = get_logger("statement_ledger.ingest")

type ProgressCallback = Callable[[int, int], None]


def daily_sequences(keys: Iterable[Hashable]) -> list[int]:
    """Zero-based rank of each key among equal keys, in iteration order."""

    seen: Counter[Hashable] = Counter()
    out: list[int] = []
    for key in keys:
        out.append(seen[key])
        seen[key] += 1
    return out


def _notify(on_progress: ProgressCallback | None, processed: int, total: int) -> None:
    if on_progress is None:
        return
    try:
        on_progress(processed, total)
    except Exception as e:  # progress is best effort
        logger.warning("Progress callback failed at %d/%d: %s", processed, total, e)


def ingest_transactions(
    session: Session,
    records: Iterable[TransactionRecord],
    *,
    account_number: str | None,
    account_currency: str,
    resolver: GeographicResolver,
    categorizer: MerchantCategorizer,
    on_progress: ProgressCallback | None = None,
) -> ImportResult:
    """Persist the new transactions of one statement batch.

    Runs entirely inside the caller's session; commit or rollback is the
    caller's decision (``db.client.session_scope``).

    Parameters
    ----------
    records:
        Parsed purchases in statement order. Other transaction types are
        ignored and not counted.
    account_number / account_currency:
        Natural key and currency of the statement's account.
    on_progress:
        Optional ``(processed, total)`` callback invoked roughly every 10% of
        the batch and at completion. Its failures are logged and ignored.

    Raises
    ------
    MissingNaturalKeyError
        When ``account_number`` is blank or the ``"Unknown"`` sentinel and the
        batch holds at least one purchase.
    """

    batch = [r for r in records if r.type.is_persisted]
    total = len(batch)
    if not batch:
        logger.info("No purchases to import for account %s", account_number)
        return ImportResult(total_count=0, imported_count=0)
    account_id = find_or_create_account(session, account_number, account_currency)

    sequences = daily_sequences((account_id, r.date) for r in batch)
    hashes = [compute_transaction_hash(r) for r in batch]
    existing = existing_dedup_keys(session, {account_id}, hashes)

    bank_ids: dict[str, int | None] = {}
    merchant_ids: dict[str, int | None] = {}
    step = max(1, total // 10)
    imported = 0

    for processed, (record, sequence, digest) in enumerate(
        zip(batch, sequences, hashes, strict=True), start=1
    ):
        details = record.details
        bank_name = details.bank_name or ""
        if bank_name not in bank_ids:
            bank_ids[bank_name] = find_or_create_bank(session, details.bank_name)
        merchant_name = details.merchant_name or ""
        if merchant_name not in merchant_ids:
            merchant_ids[merchant_name] = find_or_create_merchant(
                session, details, resolver=resolver, categorizer=categorizer
            )

        if (account_id, sequence, digest) not in existing:
            values: dict[str, Any] = {
                "account_id": account_id,
                "merchant_id": merchant_ids[merchant_name],
                "bank_id": bank_ids[bank_name],
                "transaction_date": record.date,
                "transaction_type": record.type.value,
                "amount": record.amount,
                "transaction_amount": record.transaction_amount,
                "transaction_currency": record.transaction_currency,
                "payment_method": details.payment_label,
                "description": record.description,
                "daily_sequence": sequence,
                "transaction_hash": digest,
            }
            # A concurrent writer may have inserted the same key meanwhile.
            if insert_transaction(session, values):
                imported += 1

        if processed % step == 0 or processed == total:
            _notify(on_progress, processed, total)

    result = ImportResult(total_count=total, imported_count=imported)
    logger.info(
        "Imported %d of %d transactions into account %s (%d duplicates)",
        result.imported_count,
        result.total_count,
        account_number,
        result.duplicate_count,
    )
    return result


__all__ = ["ProgressCallback", "daily_sequences", "ingest_transactions"]
