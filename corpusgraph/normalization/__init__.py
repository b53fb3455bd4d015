"""Normalization package."""

from corpusgraph.normalization.name_normalizer import TYPE_PREFIXES, NameNormalizer
from corpusgraph.normalization.value_normalizer import (
    format_usd,
    normalize_date,
    normalize_money,
    parse_money,
)
from corpusgraph.normalization.variant_matcher import (
    NameMatch,
    NameVariation,
    VariantGroup,
    VariantMatcher,
)

__all__ = [
    "NameMatch",
    "NameNormalizer",
    "NameVariation",
    "TYPE_PREFIXES",
    "VariantGroup",
    "VariantMatcher",
    "format_usd",
    "normalize_date",
    "normalize_money",
    "parse_money",
]
