"""Normalization of extracted literal values (dates, money amounts)."""

from __future__ import annotations

import re
from datetime import date
from typing import Literal

DateFormat = Literal["MDY", "ISO", "LONG", "EURO"]

MONTHS = {
    "january": 1,
    "february": 2,
    "march": 3,
    "april": 4,
    "may": 5,
    "june": 6,
    "july": 7,
    "august": 8,
    "september": 9,
    "october": 10,
    "november": 11,
    "december": 12,
}

_MULTIPLIERS = {
    "thousand": 1_000,
    "k": 1_000,
    "million": 1_000_000,
    "m": 1_000_000,
    "billion": 1_000_000_000,
    "b": 1_000_000_000,
}

_SUFFIX_RE = re.compile(r"(thousand|million|billion|[kmb])\s*$", re.IGNORECASE)
_NUMBER_RE = re.compile(r"\d[\d,]*(?:\.\d+)?")


def normalize_date(groups: tuple[str, ...], fmt: DateFormat) -> str | None:
    """Render regex groups as ``YYYY-MM-DD``.

    ``MDY`` assumes month-first for slash dates such as ``03/04/2008``. Returns
    ``None`` for calendar-impossible values.
    """
    try:
        if fmt == "MDY":
            month, day, year = int(groups[0]), int(groups[1]), int(groups[2])
        elif fmt == "ISO":
            year, month, day = int(groups[0]), int(groups[1]), int(groups[2])
        elif fmt == "LONG":
            month, day, year = MONTHS[groups[0].lower()], int(groups[1]), int(groups[2])
        elif fmt == "EURO":
            day, month, year = int(groups[0]), MONTHS[groups[1].lower()], int(groups[2])
        else:
            return None
        return date(year, month, day).isoformat()
    except (KeyError, ValueError, IndexError):
        return None


def parse_money(raw: str) -> float | None:
    """Numeric value of a money mention, applying word or letter multipliers."""
    number = _NUMBER_RE.search(raw)
    if not number:
        return None
    value = float(number.group(0).replace(",", ""))
    suffix = _SUFFIX_RE.search(raw)
    if suffix:
        value *= _MULTIPLIERS[suffix.group(1).lower()]
    return value


def format_usd(value: float) -> str:
    return f"${value:,.2f}"


def normalize_money(raw: str) -> str | None:
    """``"$2.5 million"`` -> ``"$2,500,000.00"``."""
    value = parse_money(raw)
    if value is None:
        return None
    return format_usd(value)
