"""End-to-end corpus pipeline.

Wires the components together:
1. Pattern extraction per document (parallel worker threads)
2. Optional enrichment for sparse documents (inside the worker)
3. Aggregation into the entity directory (calling thread only)
4. Co-occurrence graph, discoveries and metrics on demand, after the batch
"""

from __future__ import annotations

import random
import threading
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from corpusgraph.errors import DocumentValidationError, IngestInProgressError, RecordFormatError
from corpusgraph.extraction.enrichment import EnrichmentOutcome, LLMEnricher, estimate_tokens
from corpusgraph.extraction.pattern_extractor import PatternExtractor
from corpusgraph.graph.cooccurrence_graph import CoOccurrenceGraphBuilder
from corpusgraph.graph.corpus_aggregator import CorpusAggregator
from corpusgraph.graph.discovery_engine import DiscoveryEngine
from corpusgraph.graph.metrics import MetricsAggregator
from corpusgraph.graph.models import (
    Cluster,
    Connection,
    Discovery,
    Entity,
    GeographicPattern,
    GraphVisualization,
    HubRanking,
    SystemMetrics,
)
from corpusgraph.graph.visualization import build_visualization
from corpusgraph.ingestion.loaders import (
    iter_text_documents,
    load_extraction_records,
    save_extraction_record,
)
from corpusgraph.ingestion.records import (
    AdaptedRecord,
    Document,
    LegacyEntityRecord,
    LocalExtractionRecord,
    adapt_record,
)
from corpusgraph.normalization.variant_matcher import VariantGroup, VariantMatcher
from corpusgraph.pipeline.report import DiscoveryReport
from corpusgraph.schemas import EntityType
from corpusgraph.utils.config import Config
from corpusgraph.utils.identifiers import IdGenerator


class IngestionResult(BaseModel):
    """Outcome of ingesting one document or record."""

    model_config = ConfigDict(frozen=True)

    document_id: str
    success: bool
    skipped: bool = False
    enriched: bool = False
    entity_counts: Dict[str, int] = Field(default_factory=dict)
    error: Optional[str] = None


class _Extracted(BaseModel):
    model_config = ConfigDict(frozen=True)

    document: Document
    outcome: Optional[EnrichmentOutcome] = None
    error: Optional[str] = None


class CorpusPipeline:
    """Facade over extraction, aggregation, graph and discovery.

    Example:
        >>> pipeline = CorpusPipeline(config)
        >>> pipeline.ingest_directory("data/documents")
        >>> pipeline.run_all_discoveries()
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        *,
        extractor: Optional[PatternExtractor] = None,
        enricher: Optional[LLMEnricher] = None,
        aggregator: Optional[CorpusAggregator] = None,
        id_generator: Optional[IdGenerator] = None,
        clock: Callable[[], float] | None = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.config = config or Config()
        self.extractor = extractor or PatternExtractor(self.config.extraction)
        if enricher is None and self.config.enrichment.enabled:
            enricher = LLMEnricher(self.config.enrichment)
        self.enricher = enricher
        self.aggregator = aggregator or CorpusAggregator(self.config.aggregation)
        self.graph = CoOccurrenceGraphBuilder(self.aggregator, self.config.graph)
        self.discovery = DiscoveryEngine(
            self.aggregator, self.graph, self.config.discovery, id_generator=id_generator
        )
        self.metrics = MetricsAggregator(
            self.aggregator,
            self.graph,
            self.config.metrics,
            failed_documents=lambda: self.stats["documents_failed"],
            clock=clock,
        )
        self.variant_matcher = VariantMatcher()
        self._rng = rng
        self._ingest_lock = threading.Lock()

        # Processing statistics
        self.stats: Dict[str, int] = {
            "documents_processed": 0,
            "documents_failed": 0,
            "documents_skipped": 0,
            "local_extractions": 0,
            "enriched_extractions": 0,
            "enrichment_failures": 0,
            "tokens_used": 0,
            "tokens_saved": 0,
            "record_save_failures": 0,
        }

        logger.info(
            "CorpusPipeline initialized (workers={}, enrichment={})",
            self.config.pipeline.max_workers,
            "on" if self.enricher else "off",
        )

    # -----------------------
    # Ingest
    # -----------------------
    def ingest(
        self,
        documents: Iterable[Document],
        *,
        save_records_to: Path | str | None = None,
    ) -> List[IngestionResult]:
        """Extract every document in parallel, then aggregate in submission order."""
        with self._ingesting():
            batch = list(documents)
            logger.info("Processing batch of {} documents", len(batch))

            results: List[IngestionResult] = []
            workers = max(1, self.config.pipeline.max_workers)
            try:
                with ThreadPoolExecutor(max_workers=workers) as executor:
                    for extracted in executor.map(self._extract_document, batch):
                        results.append(self._aggregate(extracted, save_records_to))
            finally:
                self.metrics.invalidate()

        successful = sum(1 for r in results if r.success)
        logger.info("Batch processing complete: {}/{} successful", successful, len(results))
        return results

    def ingest_records(
        self, records: Iterable[LocalExtractionRecord | LegacyEntityRecord | AdaptedRecord]
    ) -> List[IngestionResult]:
        """Aggregate pre-extracted records without running extraction."""
        results: List[IngestionResult] = []
        with self._ingesting():
            try:
                for record in records:
                    try:
                        adapted = record if isinstance(record, AdaptedRecord) else adapt_record(record)
                        added = self.aggregator.add_document(
                            adapted.document_id, adapted.extraction, adapted.dataset_tag
                        )
                    except (DocumentValidationError, RecordFormatError) as exc:
                        logger.warning("Skipping invalid record: {}", exc)
                        self.stats["documents_failed"] += 1
                        results.append(
                            IngestionResult(document_id=_record_id(record), success=False, error=str(exc))
                        )
                        continue
                    results.append(
                        self._record_result(adapted.document_id, adapted.extraction.counts(), added)
                    )
            finally:
                self.metrics.invalidate()
        return results

    def ingest_directory(
        self, directory: Path | str, *, save_records_to: Path | str | None = None
    ) -> List[IngestionResult]:
        errors: List[str] = []
        documents = list(
            iter_text_documents(directory, self.config.pipeline.text_suffixes, errors=errors)
        )
        self.stats["documents_failed"] += len(errors)
        return self.ingest(documents, save_records_to=save_records_to)

    def load_records_directory(self, directory: Path | str) -> List[IngestionResult]:
        errors: List[str] = []
        records = list(load_extraction_records(directory, errors=errors))
        self.stats["documents_failed"] += len(errors)
        return self.ingest_records(records)

    # -----------------------
    # Entity queries
    # -----------------------
    def get_all_entities(self) -> List[Entity]:
        return self.aggregator.get_all()

    def get_top_entities(self, limit: int = 100, entity_type: EntityType | str | None = None) -> List[Entity]:
        return self.aggregator.get_top(limit, entity_type)

    def search_entities(
        self, query: str, limit: int = 20, entity_type: EntityType | str | None = None
    ) -> List[Entity]:
        return self.aggregator.search(query, limit, entity_type)

    def get_entity_details(self, entity_id: str) -> Entity | None:
        return self.aggregator.get_by_id(entity_id)

    def find_name_variants(self, entity_type: EntityType | str | None = None) -> List[VariantGroup]:
        self._require_idle()
        wanted = EntityType(entity_type) if entity_type else None
        entities = [e for e in self.aggregator.get_all() if wanted is None or e.type is wanted]
        return self.variant_matcher.group(entities)

    # -----------------------
    # Graph queries
    # -----------------------
    def build_connection_graph(self) -> List[Connection]:
        self._require_idle()
        return self.graph.build_all()

    def get_strongest_connections(self, limit: int = 50) -> List[Connection]:
        self._require_idle()
        return self.graph.strongest(limit)

    def get_entity_connections(self, entity_id: str) -> List[Connection]:
        self._require_idle()
        return self.graph.for_entity(entity_id)

    def get_system_metrics(self) -> SystemMetrics:
        self._require_idle()
        return self.metrics.get_metrics()

    def get_graph_visualization_data(self, node_limit: int = 100, edge_limit: int = 200) -> GraphVisualization:
        self._require_idle()
        return build_visualization(self.aggregator, self.graph, node_limit, edge_limit, rng=self._rng)

    # -----------------------
    # Discoveries
    # -----------------------
    def run_all_discoveries(self) -> List[Discovery]:
        self._require_idle()
        return self.discovery.run_all_discoveries()

    def find_network_clusters(
        self, min_strength: Optional[int] = None, min_size: Optional[int] = None
    ) -> List[Cluster]:
        self._require_idle()
        return self.discovery.find_network_clusters(min_strength, min_size)

    def find_most_connected(self, limit: Optional[int] = None) -> List[HubRanking]:
        self._require_idle()
        return self.discovery.find_most_connected(limit)

    def find_geographic_patterns(self) -> List[GeographicPattern]:
        self._require_idle()
        return self.discovery.find_geographic_patterns()

    def find_co_occurrence_anomalies(self) -> List[Discovery]:
        self._require_idle()
        return self.discovery.find_co_occurrence_anomalies()

    def build_report(self, *, top_limit: int = 25) -> DiscoveryReport:
        """Collect metrics and every finding into one serializable report."""
        self._require_idle()
        cfg = self.config.discovery
        return DiscoveryReport(
            parameters={
                "cluster_min_strength": cfg.cluster_min_strength,
                "cluster_min_size": cfg.cluster_min_size,
                "geographic_min_people": cfg.geographic_min_people,
                "anomaly_min_strength": cfg.anomaly_min_strength,
                "max_people_per_document": self.config.graph.max_people_per_document,
            },
            stats=dict(self.stats),
            metrics=self.metrics.get_metrics(),
            discoveries=self.discovery.run_all_discoveries(),
            clusters=self.discovery.find_network_clusters(),
            hubs=self.discovery.find_most_connected(),
            geographic_patterns=self.discovery.find_geographic_patterns(),
            strongest_connections=self.graph.strongest(top_limit),
            top_entities=self.aggregator.get_top(top_limit),
            name_variants=self.variant_matcher.group(self.aggregator.get_all()),
        )

    # -----------------------
    # Internals
    # -----------------------
    @contextmanager
    def _ingesting(self) -> Iterator[None]:
        if not self._ingest_lock.acquire(blocking=False):
            raise IngestInProgressError("Another ingest is already running")
        try:
            yield
        finally:
            self._ingest_lock.release()

    def _require_idle(self) -> None:
        if self._ingest_lock.locked():
            raise IngestInProgressError("Graph queries are unavailable until the running ingest completes")

    def _extract_document(self, document: Document) -> _Extracted:
        """Worker body: extraction plus optional enrichment, no shared writes."""
        try:
            if not document.id or not document.id.strip():
                raise DocumentValidationError("Document id must be a non-empty string")
            result = self.extractor.extract(document.text)
            if self.enricher is not None:
                outcome = self.enricher.enrich(document.id, document.text, result)
            else:
                outcome = EnrichmentOutcome(result=result, tokens_saved=estimate_tokens(document.text))
            return _Extracted(document=document, outcome=outcome)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Extraction failed for document {!r}: {}", document.id, exc)
            return _Extracted(document=document, error=str(exc))

    def _aggregate(self, extracted: _Extracted, save_records_to: Path | str | None) -> IngestionResult:
        document = extracted.document
        outcome = extracted.outcome
        if outcome is None:
            self.stats["documents_failed"] += 1
            return IngestionResult(document_id=document.id, success=False, error=extracted.error)

        self._record_enrichment(outcome)
        extraction = outcome.result
        added = self.aggregator.add_document(document.id, extraction, document.dataset_tag)
        if added and save_records_to is not None:
            try:
                save_extraction_record(save_records_to, document.id, extraction, document.dataset_tag)
            except OSError as exc:
                logger.warning("Could not save extraction record for {!r}: {}", document.id, exc)
                self.stats["record_save_failures"] += 1

        counts = extraction.counts()
        logger.debug(
            "Document {}: {} people, {} locations, {} flights",
            document.id,
            counts["people"],
            counts["locations"],
            counts["flights"],
        )
        return self._record_result(document.id, counts, added, enriched=extraction.enriched)

    def _record_enrichment(self, outcome: EnrichmentOutcome) -> None:
        if outcome.succeeded:
            self.stats["enriched_extractions"] += 1
            self.stats["tokens_used"] += outcome.tokens_used
        else:
            self.stats["local_extractions"] += 1
            self.stats["tokens_saved"] += outcome.tokens_saved
            if outcome.attempted:
                self.stats["enrichment_failures"] += 1

    def _record_result(
        self, document_id: str, counts: Dict[str, int], added: bool, *, enriched: bool = False
    ) -> IngestionResult:
        if added:
            self.stats["documents_processed"] += 1
        else:
            self.stats["documents_skipped"] += 1
        return IngestionResult(
            document_id=document_id,
            success=True,
            skipped=not added,
            enriched=enriched,
            entity_counts=counts,
        )


def _record_id(record: Any) -> str:
    if isinstance(record, LegacyEntityRecord):
        return record.document.id
    return str(getattr(record, "document_id", "") or "")
