"""Declarative regex rules for the pattern extractor.

Each rule names the result category it feeds; ``PatternExtractor`` applies the
rules in list order through a single dispatch loop, so first-encountered order
within a category follows rule order and then text order.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Literal

from corpusgraph.normalization.value_normalizer import DateFormat

Category = Literal[
    "person", "location", "date", "flight", "phone", "email", "money", "address"
]

MONTH_NAMES = (
    "January|February|March|April|May|June|July|August|September|October|November|December"
)


@dataclass(frozen=True)
class PatternRule:
    name: str
    pattern: re.Pattern[str]
    category: Category
    confidence: float
    date_format: DateFormat | None = None
    kind: str | None = None
    group: int = 0


def _rule(
    name: str,
    pattern: str,
    category: Category,
    confidence: float,
    *,
    flags: int = 0,
    **kwargs,
) -> PatternRule:
    return PatternRule(
        name=name, pattern=re.compile(pattern, flags), category=category, confidence=confidence, **kwargs
    )


DATE_RULES: List[PatternRule] = [
    _rule("date_mdy", r"\b(\d{1,2})[/\-](\d{1,2})[/\-](\d{4})\b", "date", 0.9, date_format="MDY"),
    _rule("date_iso", r"\b(\d{4})-(\d{2})-(\d{2})\b", "date", 0.9, date_format="ISO"),
    _rule(
        "date_long",
        rf"\b({MONTH_NAMES})\s+(\d{{1,2}}),?\s+(\d{{4}})\b",
        "date",
        0.9,
        flags=re.IGNORECASE,
        date_format="LONG",
    ),
    _rule(
        "date_euro",
        rf"\b(\d{{1,2}})\s+({MONTH_NAMES})\s+(\d{{4}})\b",
        "date",
        0.9,
        flags=re.IGNORECASE,
        date_format="EURO",
    ),
]


def build_default_rules(airport_codes: Iterable[str]) -> List[PatternRule]:
    """Return the ordered rule list; the airport rule is built from the gazetteer codes."""
    codes = sorted({code.upper() for code in airport_codes})
    rules: List[PatternRule] = [
        _rule(
            "person_honorific",
            r"(?:Mr\.|Mrs\.|Ms\.|Dr\.|Miss|Prof\.)\s+([A-Z][a-z]+(?:\s+[A-Z][a-z]+)?)",
            "person",
            0.7,
            group=1,
        ),
        _rule(
            "person_full_name",
            r"\b([A-Z][a-z]+\s+[A-Z][a-z]+(?:\s+(?:Jr\.|Sr\.|III|IV|II))?)",
            "person",
            0.7,
            group=1,
        ),
    ]
    if codes:
        rules.append(
            _rule("location_airport", rf"\b({'|'.join(codes)})\b", "location", 0.9, kind="airport", group=1)
        )
    rules.extend(
        [
            _rule(
                "location_city_state",
                r"\b([A-Z][a-z]+(?:\s+[A-Z][a-z]+)?),\s*([A-Z]{2})\b",
                "location",
                0.8,
                kind="city",
            ),
            *DATE_RULES,
            _rule(
                "flight_route",
                r"\b([A-Z]{3})\s*(?:->|→|\bto\b|-)\s*([A-Z]{3})\b",
                "flight",
                0.85,
                flags=re.IGNORECASE,
            ),
            _rule("phone_plain", r"\b\d{3}[-.\s]?\d{3}[-.\s]?\d{4}\b", "phone", 0.9),
            _rule("phone_parens", r"\(\d{3}\)\s*\d{3}[-.\s]?\d{4}", "phone", 0.9),
            _rule("phone_intl", r"\+1[-.\s]?\d{3}[-.\s]?\d{3}[-.\s]?\d{4}", "phone", 0.9),
            _rule("email", r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b", "email", 0.95),
            _rule(
                "money_dollar",
                r"\$[\d,]+(?:\.\d+)?(?:\s*(?:million|billion|thousand|M|B|K)\b)?",
                "money",
                0.9,
                flags=re.IGNORECASE,
            ),
            _rule("money_code", r"(?:USD|EUR|GBP)\s*[\d,]+(?:\.\d{2})?", "money", 0.9, flags=re.IGNORECASE),
            _rule(
                "street_address",
                r"\b\d+\s+(?:[A-Z][a-z]+\s+){1,3}"
                r"(?:Street|St|Avenue|Ave|Road|Rd|Boulevard|Blvd|Drive|Dr|Lane|Ln|Way|Place|Pl|Court|Ct)\.?\b",
                "address",
                0.8,
                flags=re.IGNORECASE,
            ),
        ]
    )
    return rules
