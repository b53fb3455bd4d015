"""Entity directory, co-occurrence graph and discovery heuristics."""

from corpusgraph.graph.cooccurrence_graph import CoOccurrenceGraphBuilder
from corpusgraph.graph.corpus_aggregator import CorpusAggregator
from corpusgraph.graph.discovery_engine import DiscoveryEngine
from corpusgraph.graph.metrics import MetricsAggregator
from corpusgraph.graph.models import (
    Cluster,
    Connection,
    Discovery,
    DocumentSummary,
    Entity,
    GeographicPattern,
    GraphEdge,
    GraphNode,
    GraphVisualization,
    HubRanking,
    SystemMetrics,
)
from corpusgraph.graph.visualization import build_visualization

__all__ = [
    "Cluster",
    "CoOccurrenceGraphBuilder",
    "Connection",
    "CorpusAggregator",
    "Discovery",
    "DiscoveryEngine",
    "DocumentSummary",
    "Entity",
    "GeographicPattern",
    "GraphEdge",
    "GraphNode",
    "GraphVisualization",
    "HubRanking",
    "MetricsAggregator",
    "SystemMetrics",
    "build_visualization",
]
