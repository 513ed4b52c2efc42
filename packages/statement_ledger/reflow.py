"""Undo arbitrary line wrapping introduced by PDF text extraction.

Layout-based extraction breaks lines wherever the PDF column ended, so words
("Kazakh" / "stan"), abbreviations ("MC" / "C: 5719") and hyphenated words
("becom-" / "ing") end up split across lines. :func:`reflow` stitches a list
of such lines back into one logical string using a small set of
character-class rules applied to each pair of adjacent lines.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from functools import reduce

from .location import is_country_code

# One or two capitals not followed by another letter: the tail of a split
# abbreviation ("C: 5719", "U Ltd").
_ABBREVIATION_TAIL = re.compile(r"^[A-Z]{1,2}(?![A-Za-z])")
# Except a wrapped country code ahead of the next comma segment ("MY, Maybank").
_WRAPPED_COUNTRY = re.compile(r"^([A-Z]{2}),")
_SOFT_HYPHEN = re.compile(r"(?<=[a-z])-\s+(?=[a-z])")
_WRAPPED_HYPHEN = re.compile(r"(?<=[A-Z0-9])-\s+(?=[A-Z0-9])")
_WHITESPACE = re.compile(r"\s+")


def join_pair(previous: str, following: str) -> str:
    """Join two consecutive lines, deciding whether the break was a space."""

    if not previous:
        return following
    if not following:
        return previous

    last, first = previous[-1], following[0]

    if last == "-" and first.islower():
        return previous[:-1] + following
    if last.isupper() and _ABBREVIATION_TAIL.match(following):
        wrapped = _WRAPPED_COUNTRY.match(following)
        if wrapped is None or not is_country_code(wrapped.group(1)):
            return previous + following
    if last.isalpha() and first.islower():
        return previous + following
    # Digits and punctuation after a break start a new token.
    return f"{previous} {following}"


def reflow(lines: Sequence[str]) -> str:
    """Recombine wrapped lines into a single normalized string.

    >>> reflow(["becom-", "ing problem"])
    'becoming problem'
    >>> reflow(["MUJI-TRX", "KUALA LUMPUR MY"])
    'MUJI-TRX KUALA LUMPUR MY'
    """

    if not lines:
        return ""
    if len(lines) == 1:
        return lines[0]

    joined = reduce(join_pair, lines)
    joined = _SOFT_HYPHEN.sub("", joined)
    joined = _WRAPPED_HYPHEN.sub("-", joined)
    return _WHITESPACE.sub(" ", joined).strip()


def split_lines(text: str) -> list[str]:
    """Split extracted text into trimmed, non-empty lines."""

    return [line.strip() for line in text.splitlines() if line.strip()]


__all__ = ["join_pair", "reflow", "split_lines"]
