from __future__ import annotations

import pytest

from corpusgraph.normalization.value_normalizer import (
    format_usd,
    normalize_date,
    normalize_money,
    parse_money,
)


@pytest.mark.parametrize(
    ("groups", "fmt", "expected"),
    [
        (("03", "04", "2008"), "MDY", "2008-03-04"),
        (("2008", "03", "04"), "ISO", "2008-03-04"),
        (("March", "3", "2008"), "LONG", "2008-03-03"),
        (("3", "march", "2008"), "EURO", "2008-03-03"),
    ],
)
def test_normalize_date_formats(groups, fmt, expected) -> None:
    assert normalize_date(groups, fmt) == expected


def test_impossible_dates_return_none() -> None:
    assert normalize_date(("02", "30", "2008"), "MDY") is None
    assert normalize_date(("13", "01", "2008"), "MDY") is None
    assert normalize_date(("Smarch", "1", "2008"), "LONG") is None


def test_money_multipliers() -> None:
    assert parse_money("$2.5 million") == 2_500_000
    assert parse_money("$3B") == 3_000_000_000
    assert parse_money("$40k") == 40_000
    assert parse_money("$1,250.50") == 1250.50
    assert parse_money("no digits") is None


def test_money_formatting() -> None:
    assert normalize_money("$2.5 million") == "$2,500,000.00"
    assert normalize_money("USD 1200") == "$1,200.00"
    assert format_usd(0.5) == "$0.50"
