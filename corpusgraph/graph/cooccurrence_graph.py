"""Weighted person co-occurrence graph derived from the aggregator's documents."""

from __future__ import annotations

import threading
from typing import Dict, List, Optional, Set, Tuple

from loguru import logger

from corpusgraph.graph.corpus_aggregator import CorpusAggregator
from corpusgraph.graph.models import Connection
from corpusgraph.utils.config import GraphConfig


def _sort_key(connection: Connection) -> Tuple[int, str, str]:
    return (-connection.strength, connection.a, connection.b)


class CoOccurrenceGraphBuilder:
    """Build and cache undirected edges between people who share documents.

    Each document contributes its first ``max_people_per_document`` distinct
    people; every unordered pair among them gains that document in its shared set.
    The cached edge list is rebuilt whenever the aggregator version moves.
    """

    def __init__(self, aggregator: CorpusAggregator, config: Optional[GraphConfig] = None) -> None:
        self.aggregator = aggregator
        self.config = config or GraphConfig()
        self._connections: List[Connection] | None = None
        self._built_version: int | None = None
        self._lock = threading.Lock()

    def build_all(self) -> List[Connection]:
        """All connections, strongest first (ties by ``(a, b)``)."""
        with self._lock:
            if self._connections is None or self._built_version != self.aggregator.version:
                self._connections = self._build()
                self._built_version = self.aggregator.version
            return list(self._connections)

    def strongest(self, limit: int = 50) -> List[Connection]:
        return self.build_all()[: max(0, limit)]

    def for_entity(self, entity_id: str) -> List[Connection]:
        return [c for c in self.build_all() if c.touches(entity_id)]

    def invalidate(self) -> None:
        with self._lock:
            self._connections = None
            self._built_version = None

    def refresh(self) -> List[Connection]:
        self.invalidate()
        return self.build_all()

    def _build(self) -> List[Connection]:
        cap = self.config.max_people_per_document
        shared: Dict[Tuple[str, str], Set[str]] = {}
        truncated = 0

        for document_id, person_ids in self.aggregator.iter_document_people():
            people = list(dict.fromkeys(person_ids))
            if len(people) > cap:
                truncated += 1
                people = people[:cap]
            for i, left in enumerate(people):
                for right in people[i + 1 :]:
                    pair = (left, right) if left < right else (right, left)
                    shared.setdefault(pair, set()).add(document_id)

        names = {entity.id: entity.display_name for entity in self.aggregator.get_all()}
        connections = [
            Connection(
                a=a,
                b=b,
                a_name=names.get(a, a),
                b_name=names.get(b, b),
                shared_document_ids=frozenset(documents),
            )
            for (a, b), documents in shared.items()
        ]
        connections.sort(key=_sort_key)

        if truncated:
            logger.debug("Capped person lists at {} in {} documents", cap, truncated)
        logger.info("Built {} connections", len(connections))
        return connections
