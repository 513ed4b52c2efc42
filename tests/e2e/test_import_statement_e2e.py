"""End-to-end: sample statement text -> parse -> ingest into SQLite, twice."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from pathlib import Path

from db.client import session_scope
from db.models.ledger import Account, Bank, LedgerTransaction, Merchant
from sqlalchemy import select

from statement_ledger import import_statement, parse_statement
from statement_ledger.categories import category_id_resolver
from tests.helpers.db import all_rows, bootstrap_sqlite_db


def _import(url: str, parsed, resolver):
    with session_scope(database_url=url) as session:
        return import_statement(session, parsed, resolver=resolver)


def test_import_sample_statement_twice(tmp_path: Path, data_dir: Path, resolver) -> None:
    url = bootstrap_sqlite_db(tmp_path / "e2e.sqlite3")
    parsed = parse_statement((data_dir / "statement_sample.txt").read_text(encoding="utf-8"))

    assert parsed.statement.account_number == "KZ12345ABC678"
    assert parsed.statement.period.start == date(2025, 10, 1)
    assert parsed.skipped_blocks == 1
    assert len(parsed.transactions) == 6

    first = _import(url, parsed, resolver)
    assert (first.total_count, first.imported_count, first.duplicate_count) == (6, 6, 0)

    second = _import(url, parsed, resolver)
    assert (second.total_count, second.imported_count, second.duplicate_count) == (6, 0, 6)

    with session_scope(database_url=url) as session:
        (account,) = all_rows(session, Account)
        assert (account.account_number, account.currency) == ("KZ12345ABC678", "USD")

        banks = [b.name for b in all_rows(session, Bank)]
        assert banks == ["Malayan Banking Berhad", "UniCredit Bank", "BCC"]

        category = category_id_resolver(session)
        merchants = {
            m.name: (m.category_id, m.country_code, m.city, m.needs_categorization)
            for m in all_rows(session, Merchant)
        }
        assert merchants == {
            "103 COFFEE CHOW KIT KUALA LUMPUR MY": (
                category("Groceries"), "MY", "KUALA LUMPUR", False,
            ),
            "GRAB RIDES-EC PETALING JAY MY": (
                category("Transportation"), "MY", "PETALING JAYA", False,
            ),
            "UR BISTRO FIT BA SARAJEVO BA": (category("Restaurants"), "BA", "SARAJEVO", False),
            "TASTRA D O O SARAJEVO SARAJEVO BA": (category("Groceries"), "BA", "SARAJEVO", False),
            "Grab*": (category("Transportation"), "VN", "HANOI", False),
        }

        rows = all_rows(session, LedgerTransaction)
        assert len(rows) == 6
        assert [r.daily_sequence for r in rows[:2]] == [0, 1]
        assert rows[0].transaction_hash == rows[1].transaction_hash
        assert {r.transaction_type for r in rows} == {"Purchase", "PurchaseWithBonus"}

        grab = session.scalars(
            select(LedgerTransaction).where(LedgerTransaction.transaction_date == date(2025, 10, 17))
        ).one()
        assert grab.amount == Decimal("12.40")
        assert (grab.transaction_amount, grab.transaction_currency) == (Decimal("45.00"), "MYR")
        assert grab.bank_id is None
        assert grab.payment_method == "*1234"
