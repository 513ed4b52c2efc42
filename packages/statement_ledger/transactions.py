"""Transaction section parsing.

The transaction table starts after a section header. Inside it every row
begins with a ``dd.MM.yyyy`` date; the lines that follow (until the next
dated line, a page footer or a repeated header) are wrapped continuations of
the same row and are stitched together with :func:`reflow.reflow`.

Each block is then decomposed in a fixed order: date, primary amount,
optional foreign amount, transaction type, and finally the merchant-details
tail which :func:`parse_merchant_details` splits into merchant, MCC, acquiring
bank and payment method.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from decimal import Decimal

from .errors import BlockParseError
from .logging_setup import get_logger
from .models import MerchantDetails, PaymentMethod, TransactionRecord, TransactionType
from .reflow import reflow
from .statement import parse_statement_date

logger = get_logger("statement_ledger.transactions")

SECTION_HEADERS: tuple[str, ...] = (
    "Date Sum Description Details",
    "Debit card statement details",
)
_PAGE_PREFIX = "Page "

_DATE_START = re.compile(r"^(\d{2}\.\d{2}\.\d{4})")
_PRIMARY_AMOUNT = re.compile(r"([-]?\d+\.\d{2})\s+([A-Z]{3})")
_SECONDARY_AMOUNT = re.compile(r"\((\d+\.\d{2})\s+([A-Z]{3})\)")

# Prefix-anchored strips, applied in this order.
_LEADING_DATE = re.compile(r"^\d{2}\.\d{2}\.\d{4}\s*")
_LEADING_PRIMARY = re.compile(r"^[-]?\d+\.\d{2}\s+[A-Z]{3}\s*")
_LEADING_SECONDARY = re.compile(r"^\(\d+\.\d{2}\s+[A-Z]{3}\)\s*")

# First match wins, so the longer "Purchase with bonuses" precedes "Purchase".
TYPE_KEYWORDS: tuple[tuple[str, TransactionType], ...] = (
    ("Purchase with bonuses", TransactionType.PURCHASE_WITH_BONUS),
    ("Purchase", TransactionType.PURCHASE),
    ("Transfer", TransactionType.TRANSFER),
    ("Refund", TransactionType.REFUND),
    ("Account replenishment", TransactionType.REPLENISHMENT),
    ("Cash withdrawal", TransactionType.CASH_WITHDRAWAL),
)

_MCC = re.compile(r"MCC:\s*(\d+)")
_MCC_TAIL = re.compile(r"\s*MCC:\s*\d+")
_BANK = re.compile(r",\s*([^,]+),\s*MCC:")
_CARD_REFERENCE = re.compile(r"\*+\d{4}(?!\d)")
_WALLETS: tuple[tuple[str, PaymentMethod], ...] = (
    ("APPLE PAY", PaymentMethod.APPLE_PAY),
    ("GOOGLE PAY", PaymentMethod.GOOGLE_PAY),
)
_BANK_NOT_SPECIFIED = frozenset({"banknotspecified", "банкнеуказан"})
_WHITESPACE = re.compile(r"\s+")


def normalize_bank_key(name: str) -> str:
    """Whitespace-free, lower-cased bank name used for identity matching."""

    return _WHITESPACE.sub("", name).lower()


# ---- Block splitting ----------------------------------------------------------


def _is_section_header(line: str) -> bool:
    return any(header in line for header in SECTION_HEADERS)


def split_transaction_blocks(lines: Iterable[str]) -> list[str]:
    """Return one reflowed string per transaction row in the statement."""

    blocks: list[str] = []
    current: list[str] = []
    in_section = False

    def _close() -> None:
        if current:
            blocks.append(reflow(current))
            current.clear()

    for line in lines:
        if _is_section_header(line):
            _close()
            in_section = True
            continue
        if not in_section:
            continue
        if line.startswith(_PAGE_PREFIX):
            _close()
            continue
        if _DATE_START.match(line):
            _close()
            current.append(line)
        elif current:
            current.append(line)
    _close()
    return blocks


# ---- Block parsing ------------------------------------------------------------


def classify_transaction(block: str) -> tuple[TransactionType, str | None]:
    """Return the transaction type and the keyword that identified it."""

    for keyword, tx_type in TYPE_KEYWORDS:
        if keyword in block:
            return tx_type, keyword
    # Card purchases in the debit-card layout carry no type word.
    if _MCC.search(block):
        return TransactionType.PURCHASE, None
    return TransactionType.OTHER, None


def _details_tail(block: str, keyword: str | None) -> str:
    rest = _LEADING_DATE.sub("", block, count=1)
    rest = _LEADING_PRIMARY.sub("", rest, count=1)
    rest = _LEADING_SECONDARY.sub("", rest, count=1)
    if keyword:
        rest = re.sub(rf"^{re.escape(keyword)}\s*", "", rest, count=1)
    return rest.strip()


def parse_transaction_block(block: str) -> TransactionRecord:
    """Parse one reflowed block; raises :class:`BlockParseError` when unusable."""

    m = _DATE_START.match(block)
    if m is None:
        raise BlockParseError("missing date", block)
    try:
        tx_date = parse_statement_date(m.group(1))
    except ValueError as e:
        raise BlockParseError("unparseable date", block) from e

    primary = _PRIMARY_AMOUNT.search(block)
    if primary is None:
        raise BlockParseError("no amount", block)
    secondary = _SECONDARY_AMOUNT.search(block)

    tx_type, keyword = classify_transaction(block)
    raw_details = _details_tail(block, keyword)

    return TransactionRecord(
        date=tx_date,
        type=tx_type,
        amount=abs(Decimal(primary.group(1))),
        account_currency=primary.group(2),
        transaction_amount=Decimal(secondary.group(1)) if secondary else None,
        transaction_currency=secondary.group(2) if secondary else None,
        raw_details=raw_details,
        description=block,
        details=parse_merchant_details(raw_details),
    )


def extract_transactions(lines: Sequence[str]) -> tuple[list[TransactionRecord], int]:
    """Parse every block and keep the purchases.

    Returns ``(records, skipped)`` where ``skipped`` counts blocks that could
    not be parsed. Non-purchase types are dropped without being counted.
    """

    records: list[TransactionRecord] = []
    skipped = 0
    for block in split_transaction_blocks(lines):
        try:
            record = parse_transaction_block(block)
        except BlockParseError as e:
            skipped += 1
            logger.warning("Skipping transaction block: %s", e)
            continue
        if record.type.is_persisted:
            records.append(record)
        else:
            logger.debug("Ignoring %s transaction on %s", record.type, record.date)
    if skipped:
        logger.warning("Skipped %d unparseable transaction block(s)", skipped)
    return records, skipped


# ---- Merchant details -----------------------------------------------------------


def _payment(details: str) -> tuple[PaymentMethod | None, str | None]:
    for literal, method in _WALLETS:
        if literal in details:
            return method, None
    card = _CARD_REFERENCE.search(details)
    if card:
        return PaymentMethod.CARD, card.group(0)
    return None, None


def _bank(details: str) -> str | None:
    m = _BANK.search(details)
    if m is None:
        return None
    name = m.group(1).strip()
    if not name or normalize_bank_key(name) in _BANK_NOT_SPECIFIED:
        return None
    return name


def _ends_merchant(segment: str, bank_name: str | None) -> bool:
    if "MCC:" in segment or "Bank" in segment:
        return True
    if bank_name and segment == bank_name:
        return True
    if normalize_bank_key(segment) in _BANK_NOT_SPECIFIED:
        return True
    if any(literal in segment for literal, _ in _WALLETS):
        return True
    return bool(_CARD_REFERENCE.fullmatch(segment))


def _strip_payment(text: str) -> str:
    for literal, _ in _WALLETS:
        text = text.replace(literal, " ")
    text = _CARD_REFERENCE.sub(" ", text)
    return _WHITESPACE.sub(" ", text).strip()


def parse_merchant_details(details: str) -> MerchantDetails:
    """Split a merchant-details tail into its parts.

    Two layouts occur in statements:

    - comma separated: ``"<merchant and location>, <bank>, MCC: 5411, APPLE PAY"``.
      The merchant name is every segment before the first bank, MCC or
      payment segment, re-joined with ``", "``. An MCC marker or payment
      text inside a kept segment is cut out of it.
    - space only: ``"GRAB RIDES-EC PETALING JAY MY"``. When the last word looks
      like a country code, the first word is the merchant and the remaining
      words become ``location_text``.
    """

    mcc = _MCC.search(details)
    method, card_reference = _payment(details)
    bank_name = _bank(details)

    merchant_name: str | None
    location_text: str | None = None
    if "," in details:
        segments = [s.strip() for s in details.split(",")]
        kept: list[str] = []
        for i, segment in enumerate(segments):
            if i > 0 and _ends_merchant(segment, bank_name):
                break
            cleaned = _strip_payment(_MCC_TAIL.sub("", segment))
            if cleaned:
                kept.append(cleaned)
            if "MCC:" in segment:
                break
        merchant_name = ", ".join(kept)
    else:
        text = _strip_payment(_MCC_TAIL.sub("", details))
        words = text.split()
        if len(words) >= 2 and len(words[-1]) == 2 and words[-1].isalpha():
            merchant_name = words[0]
            location_text = " ".join(words[1:])
        else:
            merchant_name = text

    return MerchantDetails(
        merchant_name=merchant_name or None,
        mcc_code=mcc.group(1) if mcc else None,
        bank_name=bank_name,
        payment_method=method,
        card_reference=card_reference,
        location_text=location_text,
    )


__all__ = [
    "SECTION_HEADERS",
    "TYPE_KEYWORDS",
    "classify_transaction",
    "extract_transactions",
    "normalize_bank_key",
    "parse_merchant_details",
    "parse_transaction_block",
    "split_transaction_blocks",
]
