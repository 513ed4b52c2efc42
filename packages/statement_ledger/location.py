"""Resolve the country and city at the tail of a merchant string.

Card acquirers print merchants as ``"<NAME> <CITY> <CC>"`` with no separator
between the merchant and the city, so the parse is anchored on the country
code: the last token must be an ISO 3166-1 alpha-2 code, and the one to three
tokens right before it are looked up in the gazetteer for that country.
"""

from __future__ import annotations

from .gazetteer import Gazetteer
from .logging_setup import get_logger
from .models import ParsedLocation

logger = get_logger("statement_ledger.location")

ISO_COUNTRY_CODES: frozenset[str] = frozenset(
    """
    AD AE AF AG AI AL AM AO AQ AR AS AT AU AW AX AZ BA BB BD BE BF BG BH BI BJ
    BL BM BN BO BQ BR BS BT BV BW BY BZ CA CC CD CF CG CH CI CK CL CM CN CO CR
    CU CV CW CX CY CZ DE DJ DK DM DO DZ EC EE EG EH ER ES ET FI FJ FK FM FO FR
    GA GB GD GE GF GG GH GI GL GM GN GP GQ GR GS GT GU GW GY HK HM HN HR HT HU
    ID IE IL IM IN IO IQ IR IS IT JE JM JO JP KE KG KH KI KM KN KP KR KW KY KZ
    LA LB LC LI LK LR LS LT LU LV LY MA MC MD ME MF MG MH MK ML MM MN MO MP MQ
    MR MS MT MU MV MW MX MY MZ NA NC NE NF NG NI NL NO NP NR NU NZ OM PA PE PF
    PG PH PK PL PM PN PR PS PT PW PY QA RE RO RS RU RW SA SB SC SD SE SG SH SI
    SJ SK SL SM SN SO SR SS ST SV SX SY SZ TC TD TF TG TH TJ TK TL TM TN TO TR
    TT TV TW TZ UA UG UM US UY UZ VA VC VE VG VI VN VU WF WS YE YT ZA ZM ZW
    """.split()
)

# Longest first: many city names span several words ("KUALA LUMPUR").
_WINDOW_SIZES = (3, 2, 1)


def is_country_code(token: str) -> bool:
    return len(token) == 2 and token.isalpha() and token.upper() in ISO_COUNTRY_CODES


class GeographicResolver:
    """Country/city resolution against an injected, read-only gazetteer."""

    def __init__(self, gazetteer: Gazetteer, *, fuzzy: bool = True) -> None:
        self.gazetteer = gazetteer
        self.fuzzy = fuzzy

    def resolve(self, text: str | None) -> ParsedLocation:
        """Return ``(country_code, city)`` for a merchant string.

        Without a valid trailing country code nothing is returned, even if a
        city name appears earlier. With a country but no gazetteer hit the
        city is ``None``.
        """

        if not text or not text.strip():
            return ParsedLocation()
        tokens = text.upper().split()
        country = tokens[-1]
        if not is_country_code(country):
            return ParsedLocation()

        before = tokens[:-1]
        if not before:
            return ParsedLocation(country, None)

        windows = [" ".join(before[-size:]) for size in _WINDOW_SIZES if len(before) >= size]
        for candidate in windows:
            city = self.gazetteer.canonical_city(candidate, country)
            if city:
                return ParsedLocation(country, city)
        if self.fuzzy:
            for candidate in windows:
                city = self.gazetteer.fuzzy_city(candidate, country)
                if city:
                    logger.debug("Fuzzy city match %r -> %s (%s)", candidate, city, country)
                    return ParsedLocation(country, city)
        return ParsedLocation(country, None)


__all__ = ["ISO_COUNTRY_CODES", "GeographicResolver", "is_country_code"]
