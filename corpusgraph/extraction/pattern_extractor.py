"""Local, regex and gazetteer based entity extraction.

The extractor is a pure function of the document text: it keeps no state
between calls and can run concurrently across worker threads.
"""

from __future__ import annotations

import re
from collections import defaultdict
from typing import Callable, Dict, List, Optional, Sequence, Set

from loguru import logger

from corpusgraph.extraction.gazetteer import Gazetteer, guess_location_kind
from corpusgraph.extraction.models import (
    AddressMention,
    DateMention,
    EmailMention,
    ExtractionResult,
    FlightMention,
    LocationMention,
    MoneyMention,
    PersonMention,
    PhoneMention,
)
from corpusgraph.extraction.rules import DATE_RULES, PatternRule, build_default_rules
from corpusgraph.normalization.name_normalizer import NameNormalizer
from corpusgraph.normalization.value_normalizer import format_usd, normalize_date, parse_money
from corpusgraph.utils.config import ExtractionConfig

GAZETTEER_CONFIDENCE = 0.95

_Handler = Callable[[PatternRule, "re.Match[str]", str, ExtractionResult, Dict[str, Set[str]]], None]


def needs_external_analysis(
    found: int,
    text_length: int,
    *,
    rich_entity_count: int = 10,
    min_text_length: int = 500,
    long_text_length: int = 5000,
    sparse_entity_count: int = 3,
) -> bool:
    """Decide whether a document is worth sending to the enrichment collaborator.

    Only long documents where local extraction found almost nothing qualify.
    The checks run in this order; the first that applies wins.
    """
    if found > rich_entity_count:
        return False
    if text_length < min_text_length:
        return False
    if text_length > long_text_length and found < sparse_entity_count:
        return True
    return False


class PatternExtractor:
    """Extract people, locations, dates, flights and contact details from text."""

    def __init__(
        self,
        config: Optional[ExtractionConfig] = None,
        *,
        gazetteer: Optional[Gazetteer] = None,
        rules: Optional[Sequence[PatternRule]] = None,
        normalizer: Optional[NameNormalizer] = None,
    ) -> None:
        self.config = config or ExtractionConfig()
        self.gazetteer = gazetteer or Gazetteer.from_yaml(self.config.gazetteer_file)
        self.rules: List[PatternRule] = (
            list(rules) if rules is not None else build_default_rules(self.gazetteer.airport_codes)
        )
        self.normalizer = normalizer or NameNormalizer()

        self._known_people = {
            self.normalizer.normalize_name(name) for name in self.gazetteer.known_people
        }
        self._handlers: Dict[str, _Handler] = {
            "person": self._on_person,
            "location": self._on_location,
            "date": self._on_date,
            "flight": self._on_flight,
            "phone": self._on_phone,
            "email": self._on_email,
            "money": self._on_money,
            "address": self._on_address,
        }

        logger.debug(
            "Initialized PatternExtractor with {} rules, {} known people, {} known locations",
            len(self.rules),
            len(self.gazetteer.known_people),
            len(self.gazetteer.known_locations),
        )

    def extract(self, text: str) -> ExtractionResult:
        """Run the gazetteer pass, then every rule in order, then apply the caps."""
        result = ExtractionResult()
        if not text:
            return result

        seen: Dict[str, Set[str]] = defaultdict(set)
        self._match_gazetteer(text, result, seen)

        for rule in self.rules:
            handler = self._handlers.get(rule.category)
            if handler is None:
                logger.warning("No handler for rule category {} ({})", rule.category, rule.name)
                continue
            for match in rule.pattern.finditer(text):
                handler(rule, match, text, result, seen)

        return self._apply_caps(result)

    def needs_external_analysis(self, result: ExtractionResult, text_length: int) -> bool:
        return needs_external_analysis(result.core_entity_count(), text_length)

    # -----------------------
    # Gazetteer
    # -----------------------
    def _match_gazetteer(
        self, text: str, result: ExtractionResult, seen: Dict[str, Set[str]]
    ) -> None:
        lowered = text.lower()
        half_window = self.config.context_window // 2

        for name in self.gazetteer.known_people:
            idx = lowered.find(name.lower())
            key = self.normalizer.normalize_name(name)
            if idx < 0 or not key or key in seen["person"]:
                continue
            seen["person"].add(key)
            context = text[max(0, idx - half_window) : idx + len(name) + half_window]
            result.people.append(
                PersonMention(
                    name=name,
                    confidence=GAZETTEER_CONFIDENCE,
                    context=context.strip(),
                    source="gazetteer",
                )
            )

        for name in self.gazetteer.known_locations:
            key = self.normalizer.normalize_name(name)
            if name.lower() not in lowered or not key or key in seen["location"]:
                continue
            seen["location"].add(key)
            result.locations.append(
                LocationMention(
                    name=name,
                    kind=guess_location_kind(name),
                    confidence=GAZETTEER_CONFIDENCE,
                    source="gazetteer",
                )
            )

    # -----------------------
    # Rule handlers
    # -----------------------
    def _on_person(self, rule, match, text, result, seen) -> None:
        name = match.group(rule.group).strip()
        key = self.normalizer.normalize_name(name)
        if not key or self.gazetteer.is_stop_phrase(name) or key in seen["person"]:
            return
        seen["person"].add(key)

        half_window = self.config.context_window // 2
        start = match.start(rule.group)
        context = text[max(0, start - half_window) : start + len(name) + half_window]
        known = key in self._known_people
        result.people.append(
            PersonMention(
                name=name,
                confidence=GAZETTEER_CONFIDENCE if known else rule.confidence,
                context=context.strip(),
                source="gazetteer" if known else "pattern",
            )
        )

    def _on_location(self, rule, match, text, result, seen) -> None:
        if rule.kind == "city":
            name = f"{match.group(1)}, {match.group(2)}"
        else:
            name = match.group(rule.group)
        key = self.normalizer.normalize_name(name)
        if not key or key in seen["location"]:
            return
        seen["location"].add(key)
        result.locations.append(
            LocationMention(name=name, kind=rule.kind or "location", confidence=rule.confidence)
        )

    def _on_date(self, rule, match, text, result, seen) -> None:
        raw = match.group(0)
        if raw in seen["date"]:
            return
        seen["date"].add(raw)
        normalized = normalize_date(match.groups(), rule.date_format or "MDY")
        if normalized is None:
            logger.debug("Dropping impossible date {!r}", raw)
            return
        result.dates.append(DateMention(date=normalized, raw=raw, confidence=rule.confidence))

    def _on_flight(self, rule, match, text, result, seen) -> None:
        origin = match.group(1).upper()
        destination = match.group(2).upper()
        if not (self.gazetteer.is_airport(origin) or self.gazetteer.is_airport(destination)):
            return
        result.flights.append(
            FlightMention(
                origin=origin,
                destination=destination,
                date=self._nearest_date(text, match.start()),
                confidence=rule.confidence,
            )
        )

    def _on_phone(self, rule, match, text, result, seen) -> None:
        digits = re.sub(r"\D", "", match.group(0))
        if len(digits) < 10 or digits in seen["phone"]:
            return
        seen["phone"].add(digits)
        result.phones.append(PhoneMention(number=match.group(0), confidence=rule.confidence))

    def _on_email(self, rule, match, text, result, seen) -> None:
        email = match.group(0).lower()
        if email in seen["email"]:
            return
        seen["email"].add(email)
        result.emails.append(EmailMention(email=email, confidence=rule.confidence))

    def _on_money(self, rule, match, text, result, seen) -> None:
        raw = match.group(0).strip()
        if raw in seen["money"]:
            return
        seen["money"].add(raw)
        value = parse_money(raw)
        if value is None:
            return
        result.money.append(
            MoneyMention(amount=format_usd(value), value=value, raw=raw, confidence=rule.confidence)
        )

    def _on_address(self, rule, match, text, result, seen) -> None:
        result.addresses.append(AddressMention(address=match.group(0), confidence=rule.confidence))

    # -----------------------
    # Helpers
    # -----------------------
    def _nearest_date(self, text: str, position: int) -> str:
        window = self.config.flight_date_window
        offset = max(0, position - window)
        context = text[offset : position + window]

        best: tuple[int, str] | None = None
        for rule in DATE_RULES:
            for match in rule.pattern.finditer(context):
                distance = abs(offset + match.start() - position)
                if best is not None and distance >= best[0]:
                    continue
                value = normalize_date(match.groups(), rule.date_format or "MDY") or match.group(0)
                best = (distance, value)
        return best[1] if best else "unknown"

    def _apply_caps(self, result: ExtractionResult) -> ExtractionResult:
        cfg = self.config
        result.people = result.people[: cfg.max_people]
        result.locations = result.locations[: cfg.max_locations]
        result.dates = result.dates[: cfg.max_dates]
        result.flights = result.flights[: cfg.max_flights]
        result.phones = result.phones[: cfg.max_phones]
        result.money = result.money[: cfg.max_money]
        result.addresses = result.addresses[: cfg.max_addresses]
        return result
