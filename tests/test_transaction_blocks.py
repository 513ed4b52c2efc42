from datetime import date
from decimal import Decimal

import pytest

from statement_ledger.errors import BlockParseError
from statement_ledger.models import PaymentMethod, TransactionType
from statement_ledger.reflow import split_lines
from statement_ledger.transactions import (
    classify_transaction,
    extract_transactions,
    normalize_bank_key,
    parse_merchant_details,
    parse_transaction_block,
    split_transaction_blocks,
)

COFFEE_BLOCK = (
    "16.10.2025 -3.26 USD 103 COFFEE CHOW KIT KUALA LUMPUR MY, "
    "Malayan Banking Berhad, MCC: 5411, APPLE PAY"
)


def test_parses_card_purchase_block_end_to_end():
    tx = parse_transaction_block(COFFEE_BLOCK)

    assert tx.date == date(2025, 10, 16)
    assert tx.type is TransactionType.PURCHASE
    assert tx.amount == Decimal("3.26")
    assert tx.account_currency == "USD"
    assert tx.transaction_amount is None
    assert tx.description == COFFEE_BLOCK

    d = tx.details
    assert d.merchant_name == "103 COFFEE CHOW KIT KUALA LUMPUR MY"
    assert d.mcc_code == "5411"
    assert d.payment_method is PaymentMethod.APPLE_PAY
    assert d.payment_label == "APPLE PAY"
    assert d.bank_name == "Malayan Banking Berhad"
    assert d.location_source == "103 COFFEE CHOW KIT KUALA LUMPUR MY"


def test_foreign_amount_and_type_keyword_are_stripped_from_details():
    block = (
        "17.10.2025 -12.40 USD (45.00 MYR) Purchase GRAB RIDES-EC PETALING JAY MY, "
        "Bank not specified, MCC: 4121, *1234"
    )
    tx = parse_transaction_block(block)

    assert tx.transaction_amount == Decimal("45.00")
    assert tx.transaction_currency == "MYR"
    assert tx.raw_details.startswith("GRAB RIDES-EC")
    assert tx.details.merchant_name == "GRAB RIDES-EC PETALING JAY MY"
    assert tx.details.bank_name is None
    assert tx.details.payment_method is PaymentMethod.CARD
    assert tx.details.payment_label == "*1234"


@pytest.mark.parametrize(
    ("block", "expected"),
    [
        ("01.10.2025 -5.00 USD Purchase with bonuses SHOP", TransactionType.PURCHASE_WITH_BONUS),
        ("01.10.2025 -5.00 USD Purchase SHOP", TransactionType.PURCHASE),
        ("01.10.2025 -5.00 USD Transfer To card", TransactionType.TRANSFER),
        ("01.10.2025 5.00 USD Refund SHOP", TransactionType.REFUND),
        ("01.10.2025 5.00 USD Account replenishment", TransactionType.REPLENISHMENT),
        ("01.10.2025 -5.00 USD Cash withdrawal ATM", TransactionType.CASH_WITHDRAWAL),
        ("01.10.2025 -5.00 USD Something else", TransactionType.OTHER),
    ],
)
def test_classifies_transaction_types_in_order(block, expected):
    assert classify_transaction(block)[0] is expected


@pytest.mark.parametrize(
    ("block", "reason"),
    [
        ("32.13.2025 -1.00 USD Purchase X", "unparseable date"),
        ("01.10.2025 Purchase without amount", "no amount"),
        ("Purchase 1.00 USD", "missing date"),
    ],
)
def test_unusable_blocks_raise_block_parse_error(block, reason):
    with pytest.raises(BlockParseError) as exc:
        parse_transaction_block(block)
    assert exc.value.reason == reason


def test_splits_blocks_across_page_breaks_and_repeated_headers(data_dir):
    lines = split_lines((data_dir / "statement_sample.txt").read_text(encoding="utf-8"))

    blocks = split_transaction_blocks(lines)

    assert len(blocks) == 9
    assert blocks[2] == (
        "17.10.2025 -12.40 USD (45.00 MYR) Purchase GRAB RIDES-EC PETALING JAY MY, "
        "Bank not specified, MCC: 4121, *1234"
    )
    # "BC" + "C, MCC" rejoins the split bank abbreviation.
    assert "SARAJEVO BA, BCC, MCC: 5411" in blocks[6]
    assert not any(b.startswith("Page") for b in blocks)


def test_lines_before_section_header_are_ignored():
    lines = ["16.10.2025 -1.00 USD Purchase HEADER NOISE", "Date Sum Description Details"]
    assert split_transaction_blocks(lines) == []


def test_page_break_drops_orphan_continuation_lines():
    lines = [
        "Debit card statement details",
        "01.10.2025 -1.00 USD Purchase SHOP A",
        "Page 1 of 3",
        "orphan footer text",
        "02.10.2025 -2.00 USD Purchase SHOP B",
    ]
    assert split_transaction_blocks(lines) == [
        "01.10.2025 -1.00 USD Purchase SHOP A",
        "02.10.2025 -2.00 USD Purchase SHOP B",
    ]


def test_extract_transactions_keeps_purchases_and_counts_skipped(data_dir):
    lines = split_lines((data_dir / "statement_sample.txt").read_text(encoding="utf-8"))

    records, skipped = extract_transactions(lines)

    assert skipped == 1
    assert [r.type for r in records] == [
        TransactionType.PURCHASE,
        TransactionType.PURCHASE,
        TransactionType.PURCHASE,
        TransactionType.PURCHASE,
        TransactionType.PURCHASE_WITH_BONUS,
        TransactionType.PURCHASE,
    ]
    assert [r.details.merchant_name for r in records] == [
        "103 COFFEE CHOW KIT KUALA LUMPUR MY",
        "103 COFFEE CHOW KIT KUALA LUMPUR MY",
        "GRAB RIDES-EC PETALING JAY MY",
        "UR BISTRO FIT BA SARAJEVO BA",
        "TASTRA D O O SARAJEVO SARAJEVO BA",
        "Grab*",
    ]


def test_space_only_details_split_first_word_from_location():
    d = parse_merchant_details("Grab* A 7C953M6WWIW4 HA NOI VN MCC: 4121")

    assert d.merchant_name == "Grab*"
    assert d.location_text == "A 7C953M6WWIW4 HA NOI VN"
    assert d.location_source == "A 7C953M6WWIW4 HA NOI VN"
    assert d.mcc_code == "4121"
    assert d.bank_name is None


def test_space_only_details_without_country_keep_whole_name():
    d = parse_merchant_details("NETFLIX.COM GOOGLE PAY")

    assert d.merchant_name == "NETFLIX.COM"
    assert d.location_text is None
    assert d.payment_method is PaymentMethod.GOOGLE_PAY


@pytest.mark.parametrize("bank", ["Bank not specified", "BANK NOT SPECIFIED", "Банк не указан"])
def test_unspecified_bank_is_absent(bank):
    d = parse_merchant_details(f"KONZUM BIH K046 SARAJEVO BA, {bank}, MCC: 5411")
    assert d.bank_name is None
    assert d.merchant_name == "KONZUM BIH K046 SARAJEVO BA"


def test_comma_format_keeps_location_segments_in_merchant_name():
    d = parse_merchant_details("MUJI, PAVILION, KUALA LUMPUR MY, CIMB, MCC: 5311, *9876")

    assert d.merchant_name == "MUJI, PAVILION, KUALA LUMPUR MY"
    assert d.bank_name == "CIMB"
    assert d.card_reference == "*9876"


def test_bank_key_ignores_whitespace_and_case():
    assert normalize_bank_key("BC C") == normalize_bank_key("bcc") == "bcc"


def test_mcc_in_first_comma_segment_is_cut_from_merchant_name(resolver):
    tx = parse_transaction_block("16.10.2025 -3.26 USD SHOP PODGORICA ME MCC: 5411, *1234")
    d = tx.details

    assert d.merchant_name == "SHOP PODGORICA ME"
    assert d.mcc_code == "5411"
    assert d.payment_label == "*1234"
    location = resolver.resolve(d.location_source)
    assert (location.country_code, location.city) == ("ME", "PODGORICA")


def test_uppercase_bank_like_location_stays_in_merchant_name():
    d = parse_merchant_details("COFFEE, BANKSTOWN AU, CBA, MCC: 5814")

    assert d.merchant_name == "COFFEE, BANKSTOWN AU"
    assert d.bank_name == "CBA"
