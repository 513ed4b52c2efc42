"""Transient records produced by the statement parsing pipeline.

Everything here is immutable and built per parse call. Persisted rows live in
``db.models.ledger``; :mod:`statement_ledger.ingest` converts between the two.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import StrEnum

UNKNOWN = "Unknown"
DEFAULT_CURRENCY = "USD"


class TransactionType(StrEnum):
    PURCHASE = "Purchase"
    PURCHASE_WITH_BONUS = "PurchaseWithBonus"
    TRANSFER = "Transfer"
    REFUND = "Refund"
    REPLENISHMENT = "Replenishment"
    CASH_WITHDRAWAL = "CashWithdrawal"
    FEE = "Fee"
    OTHER = "Other"

    @property
    def is_persisted(self) -> bool:
        """Only purchases make it into the ledger."""
        return self in (TransactionType.PURCHASE, TransactionType.PURCHASE_WITH_BONUS)


class PaymentMethod(StrEnum):
    APPLE_PAY = "APPLE PAY"
    GOOGLE_PAY = "GOOGLE PAY"
    CARD = "CARD"
    OTHER = "OTHER"


@dataclass(frozen=True, slots=True)
class DatePeriod:
    start: date
    end: date


@dataclass(frozen=True, slots=True)
class RawStatement:
    """Header fields of one statement document.

    Missing fields degrade to sentinels: ``"Unknown"`` for holder and account
    number, ``"USD"`` for currency, zero for balances. ``opening_balance`` is
    always zero because the statement layout does not carry it.
    """

    holder: str
    account_number: str
    currency: str
    period: DatePeriod
    opening_balance: Decimal = Decimal("0.00")
    closing_balance: Decimal = Decimal("0.00")

    @property
    def has_account_number(self) -> bool:
        return bool(self.account_number) and self.account_number != UNKNOWN


@dataclass(frozen=True, slots=True)
class MerchantDetails:
    """Decomposed merchant-details tail of a transaction block.

    ``location_text`` is only set for the comma-less layout, where the first
    word is the merchant and the remaining words are handed to the geographic
    resolver whole.
    """

    merchant_name: str | None = None
    mcc_code: str | None = None
    bank_name: str | None = None
    payment_method: PaymentMethod | None = None
    card_reference: str | None = None
    location_text: str | None = None

    @property
    def location_source(self) -> str | None:
        """Text the geographic resolver should look at."""
        return self.location_text or self.merchant_name

    @property
    def payment_label(self) -> str | None:
        """Printable payment method: wallet literal or masked card reference."""
        if self.payment_method is PaymentMethod.CARD and self.card_reference:
            return self.card_reference
        return self.payment_method.value if self.payment_method else None


@dataclass(frozen=True, slots=True)
class TransactionRecord:
    """One parsed transaction block.

    ``amount`` is unsigned and in the account currency. ``description`` is the
    full reflowed block text, kept for audit and as hash input.
    """

    date: date
    type: TransactionType
    amount: Decimal
    account_currency: str
    raw_details: str
    description: str
    transaction_amount: Decimal | None = None
    transaction_currency: str | None = None
    details: MerchantDetails = field(default_factory=MerchantDetails)


@dataclass(frozen=True, slots=True)
class ParsedLocation:
    country_code: str | None = None
    city: str | None = None


@dataclass(frozen=True, slots=True)
class ParsedStatement:
    statement: RawStatement
    transactions: tuple[TransactionRecord, ...]
    skipped_blocks: int = 0


@dataclass(frozen=True, slots=True)
class ImportResult:
    """Aggregate outcome of one ingestion batch."""

    total_count: int
    imported_count: int

    @property
    def duplicate_count(self) -> int:
        return self.total_count - self.imported_count


__all__ = [
    "DEFAULT_CURRENCY",
    "UNKNOWN",
    "DatePeriod",
    "ImportResult",
    "MerchantDetails",
    "ParsedLocation",
    "ParsedStatement",
    "PaymentMethod",
    "RawStatement",
    "TransactionRecord",
    "TransactionType",
]
