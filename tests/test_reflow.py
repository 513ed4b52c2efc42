import pytest

from statement_ledger.reflow import join_pair, reflow, split_lines


@pytest.mark.parametrize(
    ("lines", "expected"),
    [
        (["MC", "C: 5719"], "MCC: 5719"),
        (["becom-", "ing problem"], "becoming problem"),
        (["MUJI-TRX", "KUALA LUMPUR MY"], "MUJI-TRX KUALA LUMPUR MY"),
        (["Kazakh", "stan"], "Kazakhstan"),
        (["BC", "C"], "BCC"),
        (["E", "U Ltd"], "EU Ltd"),
        (["SUPER", "MARKET"], "SUPER MARKET"),
        (["-3.26 USD Purchase", "103 COFFEE"], "-3.26 USD Purchase 103 COFFEE"),
        (["ABC", "123"], "ABC 123"),
        (["the quick", "brown", "fox"], "the quickbrownfox"),
    ],
)
def test_reflow_literal_cases(lines, expected):
    assert reflow(lines) == expected


def test_reflow_empty_and_single_line():
    assert reflow([]) == ""
    # A single line is returned untouched, including odd spacing.
    assert reflow(["  MCC:   5411 "]) == "  MCC:   5411 "


def test_reflow_collapses_whitespace_and_inline_soft_hyphens():
    assert reflow(["pay-  ment   for", "GOODS  "]) == "payment for GOODS"


def test_join_pair_handles_empty_sides():
    assert join_pair("", "ABC") == "ABC"
    assert join_pair("ABC", "") == "ABC"


def test_reflow_keeps_hyphen_in_wrapped_uppercase_words():
    assert join_pair("RIDES-", "EC") == "RIDES- EC"
    assert reflow(["GRAB RIDES-", "EC PETALING JAYA MY"]) == "GRAB RIDES-EC PETALING JAYA MY"


def test_split_lines_trims_and_drops_blank_lines():
    text = "  Account number: KZ1 \n\n\t\nAccount currency: USD\r\n"
    assert split_lines(text) == ["Account number: KZ1", "Account currency: USD"]


def test_wrapped_country_code_before_comma_stays_a_separate_token():
    lines = ["16.10.2025 -3.26 USD 103 COFFEE KUALA LUMPUR", "MY, Maybank, MCC: 5411"]

    assert reflow(lines) == "16.10.2025 -3.26 USD 103 COFFEE KUALA LUMPUR MY, Maybank, MCC: 5411"
    # Non-country tails are still glued back ("BC" + "C, MCC").
    assert join_pair("SARAJEVO BA, BC", "C, MCC: 5411") == "SARAJEVO BA, BCC, MCC: 5411"
    assert join_pair("KUALA LUMPUR", "XQ, Maybank") == "KUALA LUMPURXQ, Maybank"
