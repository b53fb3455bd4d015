from __future__ import annotations

from datetime import timedelta

from corpusgraph.extraction.models import (
    DateMention,
    ExtractionResult,
    LocationMention,
    PersonMention,
)
from corpusgraph.graph.cooccurrence_graph import CoOccurrenceGraphBuilder
from corpusgraph.graph.corpus_aggregator import CorpusAggregator
from corpusgraph.graph.discovery_engine import DiscoveryEngine
from corpusgraph.schemas import DiscoveryType, Severity
from corpusgraph.utils.config import DiscoveryConfig
from corpusgraph.utils.identifiers import ContentHashIdGenerator, SequenceIdGenerator

TRIO = ["Alice Adams", "Bob Brown", "Carol Clark"]
PAIR = ["Dan Davis", "Eve Evans"]


def _engine(
    docs: list[ExtractionResult], config: DiscoveryConfig | None = None, id_generator=None
) -> DiscoveryEngine:
    aggregator = CorpusAggregator()
    for i, extraction in enumerate(docs, start=1):
        aggregator.add_document(f"doc{i}", extraction)
    graph = CoOccurrenceGraphBuilder(aggregator)
    return DiscoveryEngine(
        aggregator, graph, config or DiscoveryConfig(), id_generator=id_generator or SequenceIdGenerator()
    )


def _people(names: list[str], **extra) -> ExtractionResult:
    return ExtractionResult(people=[PersonMention(name=n) for n in names], **extra)


def test_clusters_partition_strong_components() -> None:
    engine = _engine([_people(TRIO)] * 3 + [_people(PAIR)] * 3)

    clusters = engine.find_network_clusters(min_strength=3, min_size=2)

    assert [c.members for c in clusters] == [
        ["alice_adams", "bob_brown", "carol_clark"],
        ["dan_davis", "eve_evans"],
    ]
    assert [c.id for c in clusters] == ["cluster_1", "cluster_2"]
    trio = clusters[0]
    assert trio.member_names == TRIO
    assert trio.edges_traversed == 3
    assert trio.total_edge_weight == 9
    assert trio.avg_edge_weight == 3.0
    assert trio.document_ids == ["doc1", "doc2", "doc3"]
    members = [m for c in clusters for m in c.members]
    assert len(members) == len(set(members))


def test_clusters_respect_thresholds() -> None:
    engine = _engine([_people(TRIO)] * 3 + [_people(PAIR)] * 3)

    assert engine.find_network_clusters(min_strength=4) == []
    assert [c.size for c in engine.find_network_clusters(min_strength=3, min_size=3)] == [3]


def test_most_connected_ranks_by_weighted_degree() -> None:
    engine = _engine([_people(TRIO)] * 3 + [_people(PAIR)] * 3)

    hubs = engine.find_most_connected(limit=4)

    assert [(h.entity_id, h.connections) for h in hubs] == [
        ("alice_adams", 6),
        ("bob_brown", 6),
        ("carol_clark", 6),
        ("dan_davis", 3),
    ]
    assert hubs[0].name == "Alice Adams"
    assert hubs[0].documents == 3


def test_geographic_patterns_need_enough_people() -> None:
    engine = _engine(
        [
            _people(
                TRIO,
                locations=[LocationMention(name="Zorro Ranch")],
                dates=[DateMention(date="2002-07-04", raw="07/04/2002")],
            ),
            _people(TRIO[:2], locations=[LocationMention(name="Palm Beach")]),
        ]
    )

    patterns = engine.find_geographic_patterns(min_people=3)

    assert len(patterns) == 1
    pattern = patterns[0]
    assert pattern.location == "Zorro Ranch"
    assert pattern.person_ids == ["alice_adams", "bob_brown", "carol_clark"]
    assert pattern.dates == ["2002-07-04"]
    assert pattern.document_ids == ["doc1"]


def test_anomaly_severity_follows_strength() -> None:
    engine = _engine([_people(PAIR)] * 5 + [_people(TRIO[:2])] * 10)

    anomalies = engine.find_co_occurrence_anomalies()

    assert [(a.entity_ids, a.severity) for a in anomalies] == [
        (["alice_adams", "bob_brown"], Severity.HIGH),
        (["dan_davis", "eve_evans"], Severity.MEDIUM),
    ]
    assert anomalies[0].type is DiscoveryType.STRONG_CONNECTION
    assert anomalies[0].title == "Strong Connection: Alice Adams ↔ Bob Brown"
    assert anomalies[0].metadata["strength"] == 10


def test_run_all_discoveries_orders_by_severity() -> None:
    config = DiscoveryConfig(cluster_discovery_min_size=3, cluster_critical_size=3)
    engine = _engine([_people(TRIO)] * 5, config)

    discoveries = engine.run_all_discoveries()

    assert [d.severity for d in discoveries] == [
        Severity.CRITICAL,
        Severity.MEDIUM,
        Severity.MEDIUM,
        Severity.MEDIUM,
    ]
    assert discoveries[0].type is DiscoveryType.NETWORK_CLUSTER
    assert discoveries[0].title == "Network Cluster: 3 Connected Individuals"
    assert all(d.created_at.utcoffset() == timedelta(0) for d in discoveries)


def test_small_corpus_has_no_discoveries() -> None:
    engine = _engine([_people(TRIO[:2])])

    assert engine.run_all_discoveries() == []


def test_content_hash_ids_are_reproducible() -> None:
    docs = [_people(TRIO)] * 5

    first = _engine(docs, id_generator=ContentHashIdGenerator()).run_all_discoveries()
    second = _engine(docs, id_generator=ContentHashIdGenerator()).run_all_discoveries()

    assert [d.id for d in first] == [d.id for d in second]
    assert len({d.id for d in first}) == len(first)
