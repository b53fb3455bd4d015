"""Entity extraction package."""

from corpusgraph.extraction.enrichment import EnrichmentOutcome, LLMEnricher
from corpusgraph.extraction.gazetteer import Gazetteer
from corpusgraph.extraction.models import (
    AddressMention,
    DateMention,
    EmailMention,
    ExtractionResult,
    FlightMention,
    LocationMention,
    MoneyMention,
    OrganizationMention,
    PersonMention,
    PhoneMention,
)
from corpusgraph.extraction.pattern_extractor import PatternExtractor, needs_external_analysis
from corpusgraph.extraction.rules import PatternRule, build_default_rules

__all__ = [
    "AddressMention",
    "DateMention",
    "EmailMention",
    "EnrichmentOutcome",
    "ExtractionResult",
    "FlightMention",
    "Gazetteer",
    "LLMEnricher",
    "LocationMention",
    "MoneyMention",
    "OrganizationMention",
    "PatternExtractor",
    "PatternRule",
    "PersonMention",
    "PhoneMention",
    "build_default_rules",
    "needs_external_analysis",
]
