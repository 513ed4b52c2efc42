from datetime import date
from decimal import Decimal

from statement_ledger.models import DatePeriod
from statement_ledger.reflow import split_lines
from statement_ledger.statement import (
    ACCOUNT_NUMBER_RULES,
    extract_holder,
    extract_statement_fields,
    first_match,
)


def test_extracts_all_header_fields_from_sample(data_dir):
    lines = split_lines((data_dir / "statement_sample.txt").read_text(encoding="utf-8"))

    st = extract_statement_fields(lines)

    assert st.holder == "IVANOV IVAN"
    assert st.account_number == "KZ12345ABC678"
    assert st.currency == "USD"
    assert st.period == DatePeriod(date(2025, 10, 1), date(2025, 10, 31))
    assert st.closing_balance == Decimal("1234.56")
    assert st.opening_balance == Decimal("0.00")
    assert st.has_account_number


def test_missing_fields_fall_back_to_defaults():
    st = extract_statement_fields(["Some unrelated text", "Nothing else"], today=date(2025, 3, 31))

    assert st.holder == "Unknown"
    assert st.account_number == "Unknown"
    assert not st.has_account_number
    assert st.currency == "USD"
    # One month back, clamped to the end of February.
    assert st.period == DatePeriod(date(2025, 2, 28), date(2025, 3, 31))
    assert st.closing_balance == Decimal("0.00")


def test_default_period_wraps_year():
    st = extract_statement_fields([], today=date(2025, 1, 15))
    assert st.period == DatePeriod(date(2024, 12, 15), date(2025, 1, 15))


def test_unparseable_period_dates_use_default():
    lines = ["For the period: from 31.02.2025 to 31.03.2025"]
    st = extract_statement_fields(lines, today=date(2025, 6, 10))
    assert st.period == DatePeriod(date(2025, 5, 10), date(2025, 6, 10))


def test_account_number_patterns_are_tried_pattern_major():
    # The "Account number:" rule wins even though the "№" line comes first.
    lines = ["Card № 4400ABC", "Account number: KZ99XYZ"]
    assert first_match(lines, ACCOUNT_NUMBER_RULES) == "KZ99XYZ"
    assert first_match(["Card № 4400ABC"], ACCOUNT_NUMBER_RULES) == "4400ABC"


def test_holder_requires_a_preceding_line():
    assert extract_holder(["IIN: 123"]) == "Unknown"
    assert extract_holder(["JOHN DOE", "IIN: 123"]) == "JOHN DOE"
