"""Corpus-level counters with a time-bounded cache."""

from __future__ import annotations

from collections import Counter
from typing import Callable, Optional

from loguru import logger

from corpusgraph.graph.cooccurrence_graph import CoOccurrenceGraphBuilder
from corpusgraph.graph.corpus_aggregator import CorpusAggregator
from corpusgraph.graph.models import SystemMetrics
from corpusgraph.utils.cache import TTLCache
from corpusgraph.utils.config import MetricsConfig

COUNT_CATEGORIES = (
    "people",
    "locations",
    "organizations",
    "dates",
    "flights",
    "phones",
    "emails",
    "money",
    "addresses",
)


class MetricsAggregator:
    """Sums per-document extraction counts and counts connections.

    ``failed_documents`` is supplied by the owner of the ingest loop, since
    failed documents never reach the aggregator.
    """

    def __init__(
        self,
        aggregator: CorpusAggregator,
        graph: CoOccurrenceGraphBuilder,
        config: Optional[MetricsConfig] = None,
        *,
        failed_documents: Callable[[], int] | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.aggregator = aggregator
        self.graph = graph
        self.config = config or MetricsConfig()
        self._failed_documents = failed_documents or (lambda: 0)
        self.cache: TTLCache[SystemMetrics] = TTLCache(self.config.cache_ttl_seconds, clock=clock)

    def get_metrics(self) -> SystemMetrics:
        return self.cache.get_or_compute(self._compute)

    def invalidate(self) -> None:
        self.cache.invalidate()

    def refresh(self) -> SystemMetrics:
        return self.cache.refresh(self._compute)

    def _compute(self) -> SystemMetrics:
        logger.debug("Calculating system metrics")
        totals: Counter[str] = Counter()
        documents = self.aggregator.documents()
        for summary in documents:
            for category in COUNT_CATEGORIES:
                totals[category] += summary.counts.get(category, 0)

        return SystemMetrics(
            documents_processed=len(documents),
            documents_failed=self._failed_documents(),
            entities=totals["people"] + totals["locations"],
            unique_entities=len(self.aggregator),
            connections=len(self.graph.build_all()),
            **{category: totals[category] for category in COUNT_CATEGORIES},
        )
