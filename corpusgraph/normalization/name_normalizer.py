"""Canonical, type-namespaced lookup keys for entity names."""

from __future__ import annotations

import re
import unicodedata
from typing import Mapping

from corpusgraph.schemas import EntityType

TYPE_PREFIXES: Mapping[EntityType, str] = {
    EntityType.PERSON: "",
    EntityType.LOCATION: "loc_",
    EntityType.ORGANIZATION: "org_",
    EntityType.DATE: "date_",
    EntityType.FLIGHT: "flight_",
}

# Person keys that would start with one of these get PERSON_ESCAPE prepended.
PERSON_ESCAPE = "person_"
RESERVED_PREFIXES = tuple(p for p in TYPE_PREFIXES.values() if p) + (PERSON_ESCAPE,)


class NameNormalizer:
    """Map raw entity names to stable keys.

    ``normalize("Jeffrey Epstein", PERSON)`` gives ``jeffrey_epstein`` while the same
    string as a location gives ``loc_jeffrey_epstein``; person keys carry no prefix.
    A person body that already looks prefixed is escaped, so ``"Loc Nguyen"`` as a
    person is ``person_loc_nguyen`` and never meets the location ``"Nguyen"``.
    """

    def __init__(self, unicode_form: str = "NFKC") -> None:
        self.unicode_form = unicode_form
        self._unwanted_re = re.compile(r"[^a-z0-9\s]")
        self._whitespace_re = re.compile(r"\s+")

    def normalize_name(self, raw: str | None) -> str:
        """Lowercased, punctuation-free, single-spaced form of ``raw``."""
        if not raw:
            return ""
        text = unicodedata.normalize(self.unicode_form, raw).lower()
        text = self._unwanted_re.sub("", text)
        return self._whitespace_re.sub(" ", text).strip()

    def normalize(self, raw: str | None, entity_type: EntityType | str) -> str:
        """Return the canonical key, or ``""`` when nothing survives normalization."""
        body = self.key_body(raw)
        if not body:
            return ""
        entity_type = EntityType(entity_type)
        if entity_type is EntityType.PERSON and body.startswith(RESERVED_PREFIXES):
            return f"{PERSON_ESCAPE}{body}"
        return f"{TYPE_PREFIXES[entity_type]}{body}"

    def key_body(self, raw: str | None) -> str:
        """The key without its type prefix."""
        return self.normalize_name(raw).replace(" ", "_")

    def flight_key(self, origin: str, destination: str, date: str | None) -> str:
        return self.normalize(f"{origin} {destination} {date or 'unknown'}", EntityType.FLIGHT)
