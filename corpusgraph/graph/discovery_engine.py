"""Discovery heuristics over the entity directory and co-occurrence graph.

Every method is a pure function of the current aggregator/graph snapshot plus
its parameters. Nothing is remembered between runs: ``run_all_discoveries``
builds a fresh list each time.
"""

from __future__ import annotations

from collections import defaultdict, deque
from typing import Dict, List, Optional, Set

from loguru import logger

from corpusgraph.graph.cooccurrence_graph import CoOccurrenceGraphBuilder
from corpusgraph.graph.corpus_aggregator import CorpusAggregator
from corpusgraph.graph.models import (
    Cluster,
    Connection,
    Discovery,
    Entity,
    GeographicPattern,
    HubRanking,
)
from corpusgraph.schemas import DiscoveryType, EntityType, Severity
from corpusgraph.utils.config import DiscoveryConfig
from corpusgraph.utils.identifiers import IdGenerator, RandomIdGenerator


class DiscoveryEngine:
    """Clusters, hubs, geographic co-location and strong-edge findings."""

    def __init__(
        self,
        aggregator: CorpusAggregator,
        graph: CoOccurrenceGraphBuilder,
        config: Optional[DiscoveryConfig] = None,
        *,
        id_generator: Optional[IdGenerator] = None,
    ) -> None:
        self.aggregator = aggregator
        self.graph = graph
        self.config = config or DiscoveryConfig()
        self.id_generator: IdGenerator = id_generator or RandomIdGenerator()

    # -----------------------
    # Clusters
    # -----------------------
    def find_network_clusters(
        self, min_strength: Optional[int] = None, min_size: Optional[int] = None
    ) -> List[Cluster]:
        """Connected components of the graph after dropping edges below ``min_strength``.

        Traversal is an iterative breadth-first search. ``total_edge_weight`` sums
        the weights of edges leading to not-yet-visited neighbours as each node is
        expanded; ``edges_traversed`` counts those edges. Components smaller than
        ``min_size`` are dropped, not merged.
        """
        min_strength = self.config.cluster_min_strength if min_strength is None else min_strength
        min_size = self.config.cluster_min_size if min_size is None else min_size

        adjacency: Dict[str, Dict[str, int]] = defaultdict(dict)
        for connection in self.graph.build_all():
            if connection.strength < min_strength:
                continue
            adjacency[connection.a][connection.b] = connection.strength
            adjacency[connection.b][connection.a] = connection.strength

        entities = {entity.id: entity for entity in self.aggregator.get_all()}
        visited: Set[str] = set()
        components: List[dict] = []

        for start in sorted(adjacency):
            if start in visited:
                continue

            members: List[str] = []
            documents: Set[str] = set()
            total_weight = 0
            edges_traversed = 0
            queue = deque([start])

            while queue:
                current = queue.popleft()
                if current in visited:
                    continue
                visited.add(current)
                members.append(current)

                for neighbour, weight in sorted(adjacency[current].items()):
                    if neighbour not in visited:
                        queue.append(neighbour)
                        total_weight += weight
                        edges_traversed += 1

                entity = entities.get(current)
                if entity is not None:
                    documents |= entity.document_ids

            if len(members) < min_size:
                continue
            components.append(
                {
                    "members": members,
                    "member_names": [
                        entities[m].display_name if m in entities else m for m in members
                    ],
                    "total_edge_weight": total_weight,
                    "edges_traversed": edges_traversed,
                    "avg_edge_weight": total_weight / edges_traversed if edges_traversed else 0.0,
                    "document_ids": sorted(documents),
                }
            )

        components.sort(key=lambda c: (-len(c["members"]), -c["avg_edge_weight"]))
        clusters = [
            Cluster(id=self.id_generator.new_id("cluster", parts=component["members"]), **component)
            for component in components
        ]
        logger.info(
            "Found {} network clusters (min_strength={}, min_size={})",
            len(clusters),
            min_strength,
            min_size,
        )
        return clusters

    # -----------------------
    # Hubs
    # -----------------------
    def find_most_connected(self, limit: Optional[int] = None) -> List[HubRanking]:
        """Entities ranked by weighted degree, ties broken by entity id."""
        limit = self.config.most_connected_limit if limit is None else limit

        degree: Dict[str, int] = defaultdict(int)
        for connection in self.graph.build_all():
            degree[connection.a] += connection.strength
            degree[connection.b] += connection.strength

        ranked = sorted(degree.items(), key=lambda item: (-item[1], item[0]))[: max(0, limit)]
        hubs: List[HubRanking] = []
        for entity_id, weight in ranked:
            entity = self.aggregator.get_by_id(entity_id)
            hubs.append(
                HubRanking(
                    entity_id=entity_id,
                    name=entity.display_name if entity else entity_id,
                    connections=weight,
                    documents=entity.document_count if entity else 0,
                )
            )
        if hubs:
            logger.info("Top connected: {} ({} connections)", hubs[0].name, hubs[0].connections)
        return hubs

    # -----------------------
    # Geography
    # -----------------------
    def find_geographic_patterns(self, min_people: Optional[int] = None) -> List[GeographicPattern]:
        """Locations sharing at least one document with ``min_people`` or more people."""
        min_people = self.config.geographic_min_people if min_people is None else min_people

        entities = self.aggregator.get_all()
        people_by_document: Dict[str, Set[str]] = defaultdict(set)
        dates_by_document: Dict[str, Set[str]] = defaultdict(set)
        people: Dict[str, Entity] = {}
        dates: Dict[str, Entity] = {}
        for entity in entities:
            if entity.type is EntityType.PERSON:
                people[entity.id] = entity
                for document_id in entity.document_ids:
                    people_by_document[document_id].add(entity.id)
            elif entity.type is EntityType.DATE:
                dates[entity.id] = entity
                for document_id in entity.document_ids:
                    dates_by_document[document_id].add(entity.id)

        patterns: List[GeographicPattern] = []
        for location in entities:
            if location.type is not EntityType.LOCATION:
                continue

            person_ids: Set[str] = set()
            date_ids: Set[str] = set()
            for document_id in location.document_ids:
                person_ids |= people_by_document.get(document_id, set())
                date_ids |= dates_by_document.get(document_id, set())
            if len(person_ids) < min_people:
                continue

            ordered_people = sorted(person_ids, key=lambda pid: (-people[pid].occurrences, pid))
            patterns.append(
                GeographicPattern(
                    location_id=location.id,
                    location=location.display_name,
                    person_ids=ordered_people,
                    people=[people[pid].display_name for pid in ordered_people],
                    dates=sorted(dates[did].display_name for did in date_ids)[:10],
                    document_ids=sorted(location.document_ids),
                )
            )

        patterns.sort(key=lambda p: (-len(p.person_ids), p.location_id))
        logger.info("Found {} geographic patterns", len(patterns))
        return patterns

    # -----------------------
    # Anomalies
    # -----------------------
    def find_co_occurrence_anomalies(self) -> List[Discovery]:
        """Unusually strong pairs among the top of the strongest-edge list."""
        cfg = self.config
        candidates = self.graph.strongest(cfg.anomaly_candidate_pool)[: cfg.anomaly_top_n]
        anomalies = [
            self._connection_discovery(connection)
            for connection in candidates
            if connection.strength >= cfg.anomaly_min_strength
        ]
        logger.info("Found {} co-occurrence anomalies", len(anomalies))
        return anomalies

    # -----------------------
    # Orchestration
    # -----------------------
    def run_all_discoveries(self) -> List[Discovery]:
        """Recompute every finding and order them critical-first."""
        cfg = self.config
        discoveries: List[Discovery] = []

        for cluster in self.find_network_clusters()[: cfg.cluster_discovery_limit]:
            if cluster.size >= cfg.cluster_discovery_min_size:
                discoveries.append(self._cluster_discovery(cluster))

        for pattern in self.find_geographic_patterns()[: cfg.pattern_discovery_limit]:
            if len(pattern.person_ids) >= cfg.pattern_discovery_min_people:
                discoveries.append(self._pattern_discovery(pattern))

        discoveries.extend(self.find_co_occurrence_anomalies())

        discoveries.sort(key=lambda d: d.severity.rank)
        logger.info("Total discoveries: {}", len(discoveries))
        return discoveries

    # -----------------------
    # Discovery builders
    # -----------------------
    def _new_discovery_id(self, kind: DiscoveryType, entity_ids: List[str]) -> str:
        return self.id_generator.new_id("discovery", parts=[kind.value, *entity_ids])

    def _cluster_discovery(self, cluster: Cluster) -> Discovery:
        size = cluster.size
        key_members = ", ".join(cluster.member_names[:5])
        if len(cluster.member_names) > 5:
            key_members += "..."
        return Discovery(
            id=self._new_discovery_id(DiscoveryType.NETWORK_CLUSTER, cluster.members),
            type=DiscoveryType.NETWORK_CLUSTER,
            severity=Severity.CRITICAL if size >= self.config.cluster_critical_size else Severity.HIGH,
            title=f"Network Cluster: {size} Connected Individuals",
            description=(
                f"A network of {size} individuals with {cluster.edges_traversed} co-occurrence links "
                f"across {len(cluster.document_ids)} documents. Key members: {key_members}"
            ),
            entity_ids=list(cluster.members),
            document_ids=cluster.document_ids[:10],
            metadata={
                "cluster_id": cluster.id,
                "avg_edge_weight": cluster.avg_edge_weight,
                "total_edge_weight": cluster.total_edge_weight,
                "member_names": list(cluster.member_names),
            },
        )

    def _pattern_discovery(self, pattern: GeographicPattern) -> Discovery:
        count = len(pattern.person_ids)
        return Discovery(
            id=self._new_discovery_id(DiscoveryType.GEOGRAPHIC_PATTERN, [pattern.location_id]),
            type=DiscoveryType.GEOGRAPHIC_PATTERN,
            severity=Severity.HIGH if count >= self.config.pattern_high_people else Severity.MEDIUM,
            title=f"Geographic Pattern: {pattern.location}",
            description=(
                f"{count} individuals connected to {pattern.location} across "
                f"{len(pattern.document_ids)} documents. Notable names: {', '.join(pattern.people[:5])}"
            ),
            entity_ids=pattern.person_ids[:20],
            document_ids=pattern.document_ids[:10],
            metadata={
                "location_id": pattern.location_id,
                "location": pattern.location,
                "dates": list(pattern.dates),
            },
        )

    def _connection_discovery(self, connection: Connection) -> Discovery:
        strength = connection.strength
        return Discovery(
            id=self._new_discovery_id(DiscoveryType.STRONG_CONNECTION, [connection.a, connection.b]),
            type=DiscoveryType.STRONG_CONNECTION,
            severity=Severity.HIGH if strength >= self.config.anomaly_high_strength else Severity.MEDIUM,
            title=f"Strong Connection: {connection.a_name} ↔ {connection.b_name}",
            description=(
                f"These two individuals appear together in {strength} documents, "
                "indicating a significant relationship."
            ),
            entity_ids=[connection.a, connection.b],
            document_ids=sorted(connection.shared_document_ids),
            metadata={
                "strength": strength,
                "a_name": connection.a_name,
                "b_name": connection.b_name,
            },
        )
