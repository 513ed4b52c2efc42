"""Database library for the statement ledger.

``db.models.ledger`` holds the ORM tables (banks, accounts, categories,
merchants, transactions) and ``db.client`` the engine/session helpers. The
schema is created straight from ``metadata`` by ``statement-ledger init-db``.
"""

from __future__ import annotations

from .models.ledger import Account, Bank, Base, Category, LedgerTransaction, Merchant

metadata = Base.metadata

__all__ = [
    "Account",
    "Bank",
    "Base",
    "Category",
    "LedgerTransaction",
    "Merchant",
    "metadata",
]
