"""Decorative spiral layout for the top people in the graph.

Positions depend only on rank, plus a random height; they carry no
graph-theoretic meaning.
"""

from __future__ import annotations

import math
import random
from typing import Optional

from loguru import logger

from corpusgraph.graph.cooccurrence_graph import CoOccurrenceGraphBuilder
from corpusgraph.graph.corpus_aggregator import CorpusAggregator
from corpusgraph.graph.models import GraphEdge, GraphNode, GraphVisualization
from corpusgraph.schemas import EntityType


def spiral_position(
    index: int, node_limit: int, rng: random.Random
) -> tuple[float, float, float]:
    fraction = index / node_limit
    angle = fraction * 6 * math.pi
    radius = 5 + fraction * 15
    height = rng.uniform(-5, 5)
    return (radius * math.cos(angle), height, radius * math.sin(angle))


def build_visualization(
    aggregator: CorpusAggregator,
    graph: CoOccurrenceGraphBuilder,
    node_limit: int = 100,
    edge_limit: int = 200,
    *,
    rng: Optional[random.Random] = None,
) -> GraphVisualization:
    """Top ``node_limit`` people as nodes and the strongest edges between them."""
    if node_limit <= 0:
        return GraphVisualization()
    rng = rng or random.Random()

    people = aggregator.get_top(node_limit, EntityType.PERSON)
    node_ids = {entity.id for entity in people}
    nodes = [
        GraphNode(
            id=entity.id,
            label=entity.display_name,
            type=entity.type,
            position=spiral_position(i, node_limit, rng),
            occurrences=entity.occurrences,
            document_count=entity.document_count,
        )
        for i, entity in enumerate(people)
    ]
    edges = [
        GraphEdge(a=c.a, b=c.b, strength=c.strength, documents=len(c.shared_document_ids))
        for c in graph.strongest(edge_limit)
        if c.a in node_ids and c.b in node_ids
    ]
    logger.info("Graph data: {} nodes, {} edges", len(nodes), len(edges))
    return GraphVisualization(nodes=nodes, edges=edges)
