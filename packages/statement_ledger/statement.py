"""Statement header extraction.

Each header field is described by an ordered tuple of :class:`FieldRule`
entries. Rules are tried pattern-major: the first rule is searched across every
line before the second rule is considered, and the first rule whose converter
returns a value wins. A field with no match falls back to its default, so
:func:`extract_statement_fields` never raises.
"""

from __future__ import annotations

import calendar
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from .models import DEFAULT_CURRENCY, UNKNOWN, DatePeriod, RawStatement

STATEMENT_DATE_FORMAT = "%d.%m.%Y"
_HOLDER_ANCHOR = "IIN:"


@dataclass(frozen=True, slots=True)
class FieldRule:
    pattern: re.Pattern[str]
    convert: Callable[[re.Match[str]], Any]


def parse_statement_date(raw: str) -> date:
    """Parse a ``dd.MM.yyyy`` date; raises ``ValueError`` when malformed."""

    return datetime.strptime(raw, STATEMENT_DATE_FORMAT).date()


def _group(index: int = 1) -> Callable[[re.Match[str]], str]:
    return lambda m: m.group(index)


def _period(m: re.Match[str]) -> DatePeriod | None:
    try:
        return DatePeriod(parse_statement_date(m.group(1)), parse_statement_date(m.group(2)))
    except ValueError:
        return None


def _money(m: re.Match[str]) -> Decimal | None:
    try:
        return Decimal(m.group(1).replace(",", ""))
    except InvalidOperation:
        return None


ACCOUNT_NUMBER_RULES: tuple[FieldRule, ...] = (
    FieldRule(re.compile(r"Account number:\s*([A-Z0-9]+)"), _group()),
    FieldRule(re.compile(r"№\s*([A-Z0-9]+)"), _group()),
)
CURRENCY_RULES: tuple[FieldRule, ...] = (
    FieldRule(re.compile(r"Account currency:\s*([A-Z]{3})"), _group()),
)
PERIOD_RULES: tuple[FieldRule, ...] = (
    FieldRule(
        re.compile(
            r"For the period:\s*from\s*(\d{2}\.\d{2}\.\d{4})\s*to\s*(\d{2}\.\d{2}\.\d{4})"
        ),
        _period,
    ),
)
CLOSING_BALANCE_RULES: tuple[FieldRule, ...] = (
    FieldRule(re.compile(r"Available as of [\d.]+:\s*([\d,]+\.\d{2})\s+[A-Z]{3}"), _money),
)


def first_match(lines: Sequence[str], rules: Sequence[FieldRule]) -> Any | None:
    """Return the first converted value produced by ``rules`` over ``lines``."""

    for rule in rules:
        for line in lines:
            m = rule.pattern.search(line)
            if m is None:
                continue
            value = rule.convert(m)
            if value is not None:
                return value
    return None


def extract_holder(lines: Sequence[str]) -> str:
    """The holder's name is printed on the line right above ``IIN:``."""

    for i, line in enumerate(lines):
        if line.startswith(_HOLDER_ANCHOR) and i > 0:
            return lines[i - 1]
    return UNKNOWN


def _one_month_before(day: date) -> date:
    year, month = (day.year, day.month - 1) if day.month > 1 else (day.year - 1, 12)
    last = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last))


def default_period(today: date | None = None) -> DatePeriod:
    end = today or date.today()
    return DatePeriod(_one_month_before(end), end)


def extract_statement_fields(lines: Sequence[str], *, today: date | None = None) -> RawStatement:
    """Pull header fields out of the statement lines.

    Parameters
    ----------
    lines:
        Trimmed, non-empty statement lines (see ``reflow.split_lines``).
    today:
        Reference date for the default period; defaults to ``date.today()``.
    """

    return RawStatement(
        holder=extract_holder(lines),
        account_number=first_match(lines, ACCOUNT_NUMBER_RULES) or UNKNOWN,
        currency=first_match(lines, CURRENCY_RULES) or DEFAULT_CURRENCY,
        period=first_match(lines, PERIOD_RULES) or default_period(today),
        opening_balance=Decimal("0.00"),
        closing_balance=first_match(lines, CLOSING_BALANCE_RULES) or Decimal("0.00"),
    )


__all__ = [
    "ACCOUNT_NUMBER_RULES",
    "CLOSING_BALANCE_RULES",
    "CURRENCY_RULES",
    "PERIOD_RULES",
    "FieldRule",
    "default_period",
    "extract_holder",
    "extract_statement_fields",
    "first_match",
    "parse_statement_date",
]
