"""Corpus-wide entity directory built from per-document extraction results."""

from __future__ import annotations

import threading
from typing import Dict, Iterator, List, NamedTuple, Optional, Tuple

from loguru import logger

from corpusgraph.errors import DocumentValidationError
from corpusgraph.extraction.models import ExtractionResult
from corpusgraph.graph.models import DocumentSummary, Entity
from corpusgraph.normalization.name_normalizer import NameNormalizer
from corpusgraph.schemas import EntityType
from corpusgraph.utils.config import AggregationConfig

DEFAULT_DATASET_TAG = "Uncategorized"


class _Mention(NamedTuple):
    key: str
    name: str
    type: EntityType
    context: Optional[str]


class CorpusAggregator:
    """Owns the entity directory: key -> entity with document set and mention count.

    A document mentioning an entity k times adds the document id once and
    ``k`` to ``occurrences``. Writes are expected from a single thread; the
    lock only keeps readers from observing a half-applied document.
    """

    def __init__(
        self,
        config: Optional[AggregationConfig] = None,
        *,
        normalizer: Optional[NameNormalizer] = None,
    ) -> None:
        self.config = config or AggregationConfig()
        self.normalizer = normalizer or NameNormalizer()
        self._entities: Dict[str, Entity] = {}
        self._documents: Dict[str, DocumentSummary] = {}
        self._version = 0
        self._lock = threading.RLock()

    @property
    def version(self) -> int:
        """Incremented on every change; graph caches compare against it."""
        return self._version

    def __len__(self) -> int:
        return len(self._entities)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._entities

    # -----------------------
    # Writes
    # -----------------------
    def add_document(
        self,
        document_id: str,
        extraction: ExtractionResult,
        dataset_tag: str = DEFAULT_DATASET_TAG,
    ) -> bool:
        """Fold one document's extraction into the directory.

        Ingesting an id again adds its mentions and per-category counts a second
        time, the same rule ``merge`` applies to shards. Returns False when the
        document was skipped as already processed.
        """
        if not document_id or not document_id.strip():
            raise DocumentValidationError("Document id must be a non-empty string")

        with self._lock:
            previous = self._documents.get(document_id)
            if previous is not None and self.config.skip_reprocessed_documents:
                logger.info("Skipping already processed document {}", document_id)
                return False

            entity_ids: List[str] = []
            person_ids: List[str] = []
            seen: set[str] = set()
            for mention in self._mentions(extraction):
                self._upsert(mention, document_id)
                if mention.key in seen:
                    continue
                seen.add(mention.key)
                entity_ids.append(mention.key)
                if mention.type is EntityType.PERSON:
                    person_ids.append(mention.key)

            counts = extraction.counts()
            if previous is not None:
                logger.warning(
                    "Document {} ingested again; mention counts for its entities are added again",
                    document_id,
                )
                entity_ids = _ordered_union(previous.entity_ids, entity_ids)
                person_ids = _ordered_union(previous.person_ids, person_ids)
                counts = _added_counts(previous.counts, counts)

            self._documents[document_id] = DocumentSummary(
                document_id=document_id,
                dataset_tag=dataset_tag or DEFAULT_DATASET_TAG,
                entity_ids=entity_ids,
                person_ids=person_ids,
                counts=counts,
                enriched=extraction.enriched or bool(previous and previous.enriched),
                ingest_count=previous.ingest_count + 1 if previous else 1,
            )
            self._version += 1

        logger.debug("Aggregated document {} ({} distinct entities)", document_id, len(entity_ids))
        return True

    def merge(self, other: CorpusAggregator) -> None:
        """Fold a shard aggregator into this one.

        Document sets are unioned and mention counts summed, so the final counts do
        not depend on the order shards are merged in.
        """
        if other is self:
            return
        entities, documents = other._snapshot()
        with self._lock:
            for entity in entities:
                current = self._entities.get(entity.id)
                if current is None:
                    self._entities[entity.id] = entity
                    continue
                current.document_ids |= entity.document_ids
                current.occurrences += entity.occurrences
                if not current.context and entity.context:
                    current.context = entity.context

            for summary in documents:
                current_summary = self._documents.get(summary.document_id)
                if current_summary is None:
                    self._documents[summary.document_id] = summary
                    continue
                current_summary.entity_ids = _ordered_union(current_summary.entity_ids, summary.entity_ids)
                current_summary.person_ids = _ordered_union(current_summary.person_ids, summary.person_ids)
                current_summary.counts = _added_counts(current_summary.counts, summary.counts)
                current_summary.enriched = current_summary.enriched or summary.enriched
                current_summary.ingest_count += summary.ingest_count
            self._version += 1

        logger.debug("Merged shard with {} entities and {} documents", len(entities), len(documents))

    def clear(self) -> None:
        with self._lock:
            self._entities.clear()
            self._documents.clear()
            self._version += 1

    # -----------------------
    # Reads
    # -----------------------
    def get_all(self) -> List[Entity]:
        with self._lock:
            return [entity.model_copy(deep=True) for entity in self._entities.values()]

    def get_top(self, limit: int = 100, entity_type: EntityType | str | None = None) -> List[Entity]:
        """Most mentioned entities, ties broken by id."""
        wanted = EntityType(entity_type) if entity_type else None
        entities = [e for e in self.get_all() if wanted is None or e.type is wanted]
        entities.sort(key=lambda e: (-e.occurrences, e.id))
        return entities[: max(0, limit)]

    def search(
        self, query: str, limit: int = 20, entity_type: EntityType | str | None = None
    ) -> List[Entity]:
        """Case-insensitive substring match on display names, filtered by type before the limit."""
        needle = (query or "").lower()
        wanted = EntityType(entity_type) if entity_type else None
        matches = [
            e
            for e in self.get_all()
            if needle in e.display_name.lower() and (wanted is None or e.type is wanted)
        ]
        matches.sort(key=lambda e: (-e.occurrences, e.id))
        return matches[: max(0, limit)]

    def get_by_id(self, entity_id: str) -> Entity | None:
        with self._lock:
            entity = self._entities.get(entity_id)
            return entity.model_copy(deep=True) if entity else None

    def documents(self) -> List[DocumentSummary]:
        with self._lock:
            return [summary.model_copy(deep=True) for summary in self._documents.values()]

    def document_entities(self, document_id: str) -> List[str]:
        with self._lock:
            summary = self._documents.get(document_id)
            return list(summary.entity_ids) if summary else []

    def iter_document_people(self) -> Iterator[Tuple[str, List[str]]]:
        """Yield ``(document_id, person_ids)`` in ingest order."""
        for summary in self.documents():
            yield summary.document_id, summary.person_ids

    # -----------------------
    # Internals
    # -----------------------
    def _snapshot(self) -> Tuple[List[Entity], List[DocumentSummary]]:
        return self.get_all(), self.documents()

    def _mentions(self, extraction: ExtractionResult) -> Iterator[_Mention]:
        for person in extraction.people:
            mention = self._mention(person.name, EntityType.PERSON, person.context or person.role)
            if mention:
                yield mention
        for location in extraction.locations:
            mention = self._mention(location.name, EntityType.LOCATION, location.kind)
            if mention:
                yield mention
        for organization in extraction.organizations:
            mention = self._mention(organization.name, EntityType.ORGANIZATION, None)
            if mention:
                yield mention
        for date_mention in extraction.dates:
            mention = self._mention(date_mention.date, EntityType.DATE, date_mention.raw)
            if mention:
                yield mention
        for flight in extraction.flights:
            key = self.normalizer.flight_key(flight.origin, flight.destination, flight.date)
            if key:
                yield _Mention(key, flight.label, EntityType.FLIGHT, flight.date or "unknown")

    def _mention(self, name: str, entity_type: EntityType, context: Optional[str]) -> _Mention | None:
        name = (name or "").strip()
        if len(name) < self.config.min_name_length:
            logger.debug("Dropping {} mention {!r}: name too short", entity_type.value, name)
            return None
        key = self.normalizer.normalize(name, entity_type)
        body = self.normalizer.key_body(name)
        if len(body) < self.config.min_name_length:
            logger.debug("Dropping {} mention {!r}: key too short", entity_type.value, name)
            return None
        return _Mention(key, name, entity_type, context or None)

    def _upsert(self, mention: _Mention, document_id: str) -> None:
        entity = self._entities.get(mention.key)
        if entity is None:
            self._entities[mention.key] = Entity(
                id=mention.key,
                display_name=mention.name,
                type=mention.type,
                document_ids={document_id},
                occurrences=1,
                context=mention.context,
            )
            return
        entity.document_ids.add(document_id)
        entity.occurrences += 1
        if not entity.context and mention.context:
            entity.context = mention.context


def _ordered_union(first: List[str], second: List[str]) -> List[str]:
    return list(dict.fromkeys([*first, *second]))


def _added_counts(first: Dict[str, int], second: Dict[str, int]) -> Dict[str, int]:
    totals = dict(first)
    for category, count in second.items():
        totals[category] = totals.get(category, 0) + count
    return totals
