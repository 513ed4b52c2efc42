"""Shared SQLAlchemy models registry for the ledger database."""

from .ledger import Account, Bank, Base, Category, LedgerTransaction, Merchant

__all__ = [
    "Account",
    "Bank",
    "Base",
    "Category",
    "LedgerTransaction",
    "Merchant",
]
