from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    CHAR,
    BigInteger,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import expression as sa_expr

# SQLite only autoincrements an INTEGER PRIMARY KEY (rowid alias).
_ID = BigInteger().with_variant(Integer, "sqlite")


class Base(DeclarativeBase):
    pass


# ---------------------------
# Reference: banks / accounts / categories
# ---------------------------


class Bank(Base):
    """Acquiring bank named in a transaction's merchant details."""

    __tablename__ = "banks"

    id: Mapped[int] = mapped_column(_ID, primary_key=True, autoincrement=True)
    # Spelling of whichever variant was inserted first.
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    # Whitespace-stripped, lower-cased ``name``; "BCC" and "BC C" share a key.
    name_key: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class Account(Base):
    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(_ID, primary_key=True, autoincrement=True)
    account_number: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    currency: Mapped[str] = mapped_column(CHAR(3), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(_ID, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


# ---------------------------
# Merchants
# ---------------------------


class Merchant(Base):
    __tablename__ = "merchants"

    id: Mapped[int] = mapped_column(_ID, primary_key=True, autoincrement=True)
    # Identity key: the merchant name exactly as emitted by the block extractor.
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    mcc_code: Mapped[str | None] = mapped_column(String(10), nullable=True)
    category_id: Mapped[int | None] = mapped_column(
        _ID, ForeignKey("categories.id"), nullable=True
    )
    needs_categorization: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=sa_expr.true()
    )
    # Derived by the geographic resolver when the merchant is first seen.
    country_code: Mapped[str | None] = mapped_column(CHAR(2), nullable=True)
    city: Mapped[str | None] = mapped_column(String(200), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


# ---------------------------
# Core: transactions
# ---------------------------


class LedgerTransaction(Base):
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(_ID, primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(_ID, ForeignKey("accounts.id"), nullable=False)
    merchant_id: Mapped[int | None] = mapped_column(
        _ID, ForeignKey("merchants.id"), nullable=True
    )
    bank_id: Mapped[int | None] = mapped_column(_ID, ForeignKey("banks.id"), nullable=True)
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)
    transaction_type: Mapped[str] = mapped_column(String(32), nullable=False)
    # Unsigned: only debits (purchases) are stored.
    amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    transaction_amount: Mapped[Decimal | None] = mapped_column(Numeric(15, 2), nullable=True)
    transaction_currency: Mapped[str | None] = mapped_column(CHAR(3), nullable=True)
    payment_method: Mapped[str | None] = mapped_column(String(32), nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    daily_sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    transaction_hash: Mapped[str] = mapped_column(CHAR(64), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        # Deduplication key. The hash alone is not unique: identical purchases
        # on the same day differ only by their daily sequence.
        UniqueConstraint(
            "account_id",
            "daily_sequence",
            "transaction_hash",
            name="uq_transactions_account_seq_hash",
        ),
        CheckConstraint("daily_sequence >= 0", name="ck_transactions_daily_sequence"),
        CheckConstraint(
            "transaction_type in ('Purchase','PurchaseWithBonus')",
            name="ck_transactions_type",
        ),
    )


__all__ = [
    "Account",
    "Bank",
    "Base",
    "Category",
    "LedgerTransaction",
    "Merchant",
]
