"""Name-variant detection for aggregated entities.

Groups entities of the same type whose names are spelling variants, reversed
("Maxwell Ghislaine"), suffixed ("... II") or near-identical typos of one another.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Callable, List, Sequence

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field
from rapidfuzz.distance import Levenshtein

if TYPE_CHECKING:
    from corpusgraph.graph.models import Entity


class NameMatch(BaseModel):
    """Outcome of comparing two names."""

    model_config = ConfigDict(frozen=True)

    match: bool
    confidence: float
    reason: str


class NameVariation(BaseModel):
    model_config = ConfigDict(frozen=True)

    entity_id: str
    name: str
    mentions: int
    documents: int


class VariantGroup(BaseModel):
    """Entities believed to be spellings of one canonical name."""

    model_config = ConfigDict(frozen=True)

    canonical_id: str
    canonical_name: str
    entity_type: str
    variations: List[NameVariation] = Field(default_factory=list)
    total_mentions: int = 0
    document_ids: List[str] = Field(default_factory=list)
    confidence: float = 1.0

    @property
    def total_documents(self) -> int:
        return len(self.document_ids)


class NameParts(BaseModel):
    model_config = ConfigDict(frozen=True)

    first: str
    middle: str
    last: str
    full: str


class VariantMatcher:
    """Heuristic same-entity detection over normalized names."""

    _punct_re = re.compile(r"[.,\-'\"`]")
    _space_re = re.compile(r"\s+")
    _title_re = re.compile(
        r"\b(mr|mrs|ms|dr|prof|sir|lady|lord|prince|princess|duke|duchess)\b\.?\s*",
        re.IGNORECASE,
    )

    def __init__(
        self,
        *,
        merge_threshold: float = 0.8,
        similarity: Callable[[str, str], float] | None = None,
    ) -> None:
        self.merge_threshold = merge_threshold
        self._similarity = similarity or self._edit_similarity

    def clean(self, name: str) -> str:
        text = self._punct_re.sub("", name.lower().strip())
        text = self._space_re.sub(" ", text)
        return self._title_re.sub("", text).strip()

    def split(self, name: str) -> NameParts:
        full = self.clean(name)
        parts = [p for p in full.split(" ") if p]
        if not parts:
            return NameParts(first="", middle="", last="", full=full)
        if len(parts) == 1:
            return NameParts(first=parts[0], middle="", last="", full=full)
        return NameParts(first=parts[0], middle=" ".join(parts[1:-1]), last=parts[-1], full=full)

    def compare(self, left: str, right: str) -> NameMatch:
        """Decide whether two names refer to the same entity."""
        a = self.split(left)
        b = self.split(right)

        if a.full == b.full:
            return NameMatch(match=True, confidence=1.0, reason="exact_match")

        reversed_a = f"{a.last} {a.first}".strip()
        reversed_b = f"{b.last} {b.first}".strip()
        if a.full == reversed_b or b.full == reversed_a:
            return NameMatch(match=True, confidence=0.95, reason="reversed_name")

        if a.full and b.full and (a.full in b.full or b.full in a.full):
            if abs(len(a.full) - len(b.full)) <= 5:
                return NameMatch(match=True, confidence=0.9, reason="contains_variation")

        if a.first and a.last and b.first and b.last:
            first_sim = self._similarity(a.first, b.first)
            last_sim = self._similarity(a.last, b.last)
            if first_sim >= 0.8 and last_sim >= 0.9:
                return NameMatch(
                    match=True, confidence=min(first_sim, last_sim), reason="fuzzy_match"
                )

            cross_first = self._similarity(a.first, b.last)
            cross_last = self._similarity(a.last, b.first)
            if cross_first >= 0.8 and cross_last >= 0.9:
                return NameMatch(
                    match=True,
                    confidence=min(cross_first, cross_last) * 0.95,
                    reason="fuzzy_reversed",
                )

        overall = self._similarity(a.full, b.full)
        if overall >= 0.85:
            return NameMatch(match=True, confidence=overall, reason="high_similarity")
        return NameMatch(match=False, confidence=overall, reason="no_match")

    def group(self, entities: Sequence["Entity"]) -> List[VariantGroup]:
        """Greedy grouping; the most mentioned entity of each group is canonical.

        Only groups with at least two members are returned.
        """
        ordered = sorted(entities, key=lambda e: (-e.occurrences, e.id))
        consumed: set[int] = set()
        groups: List[VariantGroup] = []

        for i, head in enumerate(ordered):
            if i in consumed:
                continue
            members = [head]
            confidence = 1.0
            for j in range(i + 1, len(ordered)):
                if j in consumed:
                    continue
                other = ordered[j]
                if other.type != head.type:
                    continue
                result = self.compare(head.display_name, other.display_name)
                if result.match and result.confidence >= self.merge_threshold:
                    consumed.add(j)
                    members.append(other)
                    confidence = min(confidence, result.confidence)

            if len(members) < 2:
                continue

            document_ids = sorted({doc for member in members for doc in member.document_ids})
            groups.append(
                VariantGroup(
                    canonical_id=head.id,
                    canonical_name=head.display_name,
                    entity_type=head.type.value,
                    variations=[
                        NameVariation(
                            entity_id=m.id,
                            name=m.display_name,
                            mentions=m.occurrences,
                            documents=len(m.document_ids),
                        )
                        for m in members
                    ],
                    total_mentions=sum(m.occurrences for m in members),
                    document_ids=document_ids,
                    confidence=confidence,
                )
            )

        logger.debug("Found {} name-variant groups across {} entities", len(groups), len(ordered))
        return groups

    @staticmethod
    def _edit_similarity(a: str, b: str) -> float:
        if a == b:
            return 1.0
        if not a or not b:
            return 0.0
        longer = max(len(a), len(b))
        if abs(len(a) - len(b)) > max(3, longer * 0.3):
            return 0.0
        return Levenshtein.normalized_similarity(a, b)
