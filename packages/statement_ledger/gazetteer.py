"""Offline place-name index built from a GeoNames ``cities1000.txt`` dump.

The dump is tab separated with one populated place per row. Only four columns
matter here: ``name`` (1), ``asciiname`` (2), the comma separated
``alternatenames`` (3) and the ISO country code (8). Every name variant is
upper-cased and mapped to the place's canonical name (its upper-cased ASCII
name), grouped by country.

A :class:`Gazetteer` is read-only once built and can be shared freely between
threads. Build one with :func:`load_gazetteer` at startup, or with
:meth:`Gazetteer.from_records` for small in-memory fixtures.
"""

from __future__ import annotations

import csv
from bisect import bisect_left
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from os import PathLike
from pathlib import Path
from types import MappingProxyType

from rapidfuzz import process
from rapidfuzz.distance import Levenshtein

from .errors import GazetteerLoadError
from .logging_setup import get_logger

logger = get_logger("statement_ledger.gazetteer")

# GeoNames column positions.
_COL_NAME = 1
_COL_ASCII_NAME = 2
_COL_ALTERNATE_NAMES = 3
_COL_COUNTRY = 8
_MIN_COLUMNS = _COL_COUNTRY + 1

# Longer alternate "names" are descriptions or concatenated junk.
MAX_ALTERNATE_NAME_LENGTH = 50

DIRECTION_PREFIXES = frozenset({"NORTH", "SOUTH", "EAST", "WEST", "CENTRAL"})
_MIN_PREFIX_LENGTH = 4
_MIN_TYPO_LENGTH = 5


@dataclass(frozen=True, slots=True)
class GazetteerRecord:
    name: str
    ascii_name: str
    alternate_names: tuple[str, ...]
    country_code: str


@dataclass(frozen=True, slots=True)
class GazetteerStats:
    countries: int
    cities: int
    names: int
    skipped_rows: int

    def __str__(self) -> str:
        return (
            f"{self.countries} countries, {self.cities} cities, "
            f"{self.names} names (including alternates), {self.skipped_rows} rows skipped"
        )


def _norm(value: str) -> str:
    return " ".join(value.split()).upper()


class Gazetteer:
    """Country-partitioned lookup of city name variants."""

    __slots__ = ("_by_country", "_sorted_names", "_cities", "_skipped_rows")

    def __init__(
        self,
        by_country: Mapping[str, Mapping[str, str]],
        *,
        cities: int,
        skipped_rows: int = 0,
    ) -> None:
        self._by_country: Mapping[str, Mapping[str, str]] = MappingProxyType(
            {cc: MappingProxyType(dict(names)) for cc, names in by_country.items()}
        )
        self._sorted_names: Mapping[str, tuple[str, ...]] = MappingProxyType(
            {cc: tuple(sorted(names)) for cc, names in self._by_country.items()}
        )
        self._cities = cities
        self._skipped_rows = skipped_rows

    @classmethod
    def from_records(
        cls, records: Iterable[GazetteerRecord], *, skipped_rows: int = 0
    ) -> Gazetteer:
        """Index ``records``; primary names win over colliding alternate names."""

        records = list(records)
        by_country: dict[str, dict[str, str]] = {}
        cities = 0
        for rec in records:
            canonical = _norm(rec.ascii_name or rec.name)
            country = rec.country_code.strip().upper()
            if not canonical or not country:
                continue
            names = by_country.setdefault(country, {})
            for primary in (rec.name, rec.ascii_name):
                key = _norm(primary)
                if key:
                    names.setdefault(key, canonical)
            cities += 1
        for rec in records:
            canonical = _norm(rec.ascii_name or rec.name)
            names = by_country.get(rec.country_code.strip().upper())
            if not canonical or names is None:
                continue
            for alternate in rec.alternate_names:
                key = _norm(alternate)
                if key and len(key) < MAX_ALTERNATE_NAME_LENGTH:
                    names.setdefault(key, canonical)
        return cls(by_country, cities=cities, skipped_rows=skipped_rows)

    # ---- Exact lookups ----------------------------------------------------

    @property
    def countries(self) -> frozenset[str]:
        return frozenset(self._by_country)

    def has_country(self, country_code: str) -> bool:
        return country_code.strip().upper() in self._by_country

    def canonical_city(self, name: str, country_code: str) -> str | None:
        """Canonical name for an exact (case-insensitive) variant, else ``None``.

        Unknown countries never match.
        """

        names = self._by_country.get(country_code.strip().upper())
        if names is None:
            return None
        return names.get(_norm(name))

    def is_city_in_country(self, name: str, country_code: str) -> bool:
        return self.canonical_city(name, country_code) is not None

    # ---- Fuzzy fallback ---------------------------------------------------

    def fuzzy_city(self, name: str, country_code: str) -> str | None:
        """Second-pass match tolerant of statement truncation and typos.

        Tried in order for the candidate and, when it starts with a compass
        word, for the remainder without it: exact variant, shortest variant
        the candidate is a prefix of, then a variant at most one or two edits
        away that shares the candidate's leading characters.
        """

        country = country_code.strip().upper()
        names = self._by_country.get(country)
        if names is None:
            return None
        candidate = _norm(name)
        if not candidate:
            return None

        variants = [candidate]
        head, _, rest = candidate.partition(" ")
        if head in DIRECTION_PREFIXES and rest:
            variants.append(rest)

        for variant in variants:
            hit = (
                names.get(variant)
                or self._prefix_match(country, variant)
                or self._typo_match(country, variant)
            )
            if hit:
                return hit
        return None

    def _names_starting_with(self, country: str, prefix: str) -> list[str]:
        keys = self._sorted_names[country]
        out: list[str] = []
        i = bisect_left(keys, prefix)
        while i < len(keys) and keys[i].startswith(prefix):
            out.append(keys[i])
            i += 1
        return out

    def _prefix_match(self, country: str, candidate: str) -> str | None:
        if len(candidate) < _MIN_PREFIX_LENGTH:
            return None
        completions = self._names_starting_with(country, candidate)
        if not completions:
            return None
        best = min(completions, key=lambda k: (len(k), k))
        return self._by_country[country][best]

    def _typo_match(self, country: str, candidate: str) -> str | None:
        if len(candidate) < _MIN_TYPO_LENGTH:
            return None
        max_edits = 1 if len(candidate) < 8 else 2
        stem = candidate[: max(3, len(candidate) - max_edits)]
        pool = self._names_starting_with(country, stem)
        if not pool:
            return None
        found = process.extractOne(
            candidate, pool, scorer=Levenshtein.distance, score_cutoff=max_edits
        )
        if found is None:
            return None
        return self._by_country[country][found[0]]

    # ---- Introspection ----------------------------------------------------

    def stats(self) -> GazetteerStats:
        return GazetteerStats(
            countries=len(self._by_country),
            cities=self._cities,
            names=sum(len(names) for names in self._by_country.values()),
            skipped_rows=self._skipped_rows,
        )


def parse_rows(rows: Iterable[list[str]]) -> tuple[list[GazetteerRecord], int]:
    """Turn raw GeoNames rows into records; malformed rows are counted, not fatal."""

    records: list[GazetteerRecord] = []
    skipped = 0
    for row in rows:
        if len(row) < _MIN_COLUMNS:
            skipped += 1
            continue
        name = row[_COL_NAME].strip()
        ascii_name = row[_COL_ASCII_NAME].strip()
        country = row[_COL_COUNTRY].strip()
        if not country or not (name or ascii_name):
            skipped += 1
            continue
        alternates = tuple(
            alt.strip()
            for alt in row[_COL_ALTERNATE_NAMES].split(",")
            if alt.strip() and len(alt.strip()) < MAX_ALTERNATE_NAME_LENGTH
        )
        records.append(GazetteerRecord(name, ascii_name, alternates, country))
    return records, skipped


def load_gazetteer(path: str | PathLike[str]) -> Gazetteer:
    """Load a GeoNames dump from ``path``.

    Raises
    ------
    GazetteerLoadError
        When the file cannot be read or yields no usable rows.
    """

    path = Path(path)
    try:
        with path.open(encoding="utf-8", newline="") as f:
            reader = csv.reader(f, delimiter="\t", quoting=csv.QUOTE_NONE)
            records, skipped = parse_rows(reader)
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise GazetteerLoadError(f"cannot read gazetteer {path}: {e}") from e

    if not records:
        raise GazetteerLoadError(f"gazetteer {path} contains no usable rows")

    gazetteer = Gazetteer.from_records(records, skipped_rows=skipped)
    logger.info("Loaded gazetteer from %s: %s", path, gazetteer.stats())
    return gazetteer


__all__ = [
    "DIRECTION_PREFIXES",
    "MAX_ALTERNATE_NAME_LENGTH",
    "Gazetteer",
    "GazetteerRecord",
    "GazetteerStats",
    "load_gazetteer",
    "parse_rows",
]
