import pytest

from statement_ledger.location import GeographicResolver, is_country_code
from statement_ledger.models import ParsedLocation


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("103 COFFEE CHOW KIT KUALA LUMPUR MY", ParsedLocation("MY", "KUALA LUMPUR")),
        ("SOUTH JAKARTA ID", ParsedLocation("ID", "JAKARTA")),
        ("A 7C953M6WWIW4 HA NOI VN", ParsedLocation("VN", "HANOI")),
        ("UR BISTRO FIT BA SARAJEVO BA", ParsedLocation("BA", "SARAJEVO")),
        ("cafe london gb", ParsedLocation("GB", "LONDON")),
        ("PODGORICA ME", ParsedLocation("ME", "PODGORICA")),
        ("KUALA LUMPUR MY", ParsedLocation("MY", "KUALA LUMPUR")),
        ("BUDVA XX", ParsedLocation()),
        ("KONZUM SARAJEVO", ParsedLocation()),
        ("ACME SHOP ZENICA BA", ParsedLocation("BA", None)),
        ("MY", ParsedLocation("MY", None)),
        ("", ParsedLocation()),
        (None, ParsedLocation()),
    ],
)
def test_resolve_anchors_on_trailing_country_code(resolver, text, expected):
    assert resolver.resolve(text) == expected


def test_fuzzy_pass_recovers_truncated_city(resolver):
    assert resolver.resolve("GRAB RIDES-EC PETALING JAY MY") == ParsedLocation(
        "MY", "PETALING JAYA"
    )


def test_fuzzy_pass_can_be_disabled(gazetteer):
    strict = GeographicResolver(gazetteer, fuzzy=False)

    assert strict.resolve("GRAB RIDES-EC PETALING JAY MY") == ParsedLocation("MY", None)
    assert strict.resolve("KUALA LUMPUR MY") == ParsedLocation("MY", "KUALA LUMPUR")


def test_country_with_empty_gazetteer_partition_has_no_city(resolver):
    # "DE" is a valid ISO code but the sample gazetteer has no German cities.
    assert resolver.resolve("BERLIN DE") == ParsedLocation("DE", None)


@pytest.mark.parametrize(
    ("token", "expected"),
    [("MY", True), ("my", True), ("XX", False), ("M1", False), ("MYS", False)],
)
def test_is_country_code(token, expected):
    assert is_country_code(token) is expected
