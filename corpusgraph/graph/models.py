"""Pydantic models for the corpus entity directory, co-occurrence graph and findings."""

from datetime import UTC, datetime
from typing import Any, Dict, FrozenSet, List, Optional, Set, Tuple

from pydantic import BaseModel, ConfigDict, Field, computed_field

from corpusgraph.schemas import DiscoveryType, EntityType, Severity


class Entity(BaseModel):
    """A corpus-wide entity keyed by its normalized, type-prefixed name.

    ``occurrences`` counts mentions; ``document_count`` counts distinct documents.
    """

    id: str = Field(..., description="Canonical key, a function of type and normalized name")
    display_name: str = Field(..., description="First surface form seen")
    type: EntityType
    document_ids: Set[str] = Field(default_factory=set)
    occurrences: int = Field(default=0, ge=0, description="Total mention events across the corpus")
    context: Optional[str] = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def document_count(self) -> int:
        return len(self.document_ids)


class Connection(BaseModel):
    """Undirected co-occurrence edge between two person entities, stored once with ``a < b``."""

    model_config = ConfigDict(frozen=True)

    a: str
    b: str
    a_name: str
    b_name: str
    shared_document_ids: FrozenSet[str] = Field(default_factory=frozenset)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def strength(self) -> int:
        return len(self.shared_document_ids)

    @property
    def key(self) -> Tuple[str, str]:
        return (self.a, self.b)

    def touches(self, entity_id: str) -> bool:
        return entity_id in (self.a, self.b)


class Cluster(BaseModel):
    """Connected component of the strength-filtered graph."""

    model_config = ConfigDict(frozen=True)

    id: str
    members: List[str] = Field(..., description="Entity ids in traversal order, each once")
    member_names: List[str]
    total_edge_weight: int = 0
    avg_edge_weight: float = 0.0
    edges_traversed: int = 0
    document_ids: List[str] = Field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.members)


class GeographicPattern(BaseModel):
    model_config = ConfigDict(frozen=True)

    location_id: str
    location: str
    person_ids: List[str] = Field(default_factory=list)
    people: List[str] = Field(default_factory=list, description="Display names of co-located people")
    dates: List[str] = Field(default_factory=list, description="At most ten co-located dates")
    document_ids: List[str] = Field(default_factory=list)


class HubRanking(BaseModel):
    model_config = ConfigDict(frozen=True)

    entity_id: str
    name: str
    connections: int = Field(..., description="Weighted degree")
    documents: int


class Discovery(BaseModel):
    """Human-readable finding derived from graph analysis."""

    model_config = ConfigDict(frozen=True)

    id: str
    type: DiscoveryType
    severity: Severity
    title: str
    description: str
    entity_ids: List[str] = Field(default_factory=list)
    document_ids: List[str] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class DocumentSummary(BaseModel):
    """Per-document bookkeeping kept by the aggregator."""

    document_id: str
    dataset_tag: str = "Uncategorized"
    entity_ids: List[str] = Field(default_factory=list, description="Entity ids in extraction order")
    person_ids: List[str] = Field(default_factory=list, description="Unique person ids in extraction order")
    counts: Dict[str, int] = Field(default_factory=dict, description="Raw extracted counts by category")
    enriched: bool = False
    ingest_count: int = 1


class SystemMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    documents_processed: int = 0
    documents_failed: int = 0
    entities: int = Field(default=0, description="People plus locations, summed per document")
    unique_entities: int = 0
    people: int = 0
    locations: int = 0
    organizations: int = 0
    dates: int = 0
    flights: int = 0
    phones: int = 0
    emails: int = 0
    money: int = 0
    addresses: int = 0
    connections: int = 0
    computed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class GraphNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    type: EntityType
    position: Tuple[float, float, float]
    occurrences: int
    document_count: int


class GraphEdge(BaseModel):
    model_config = ConfigDict(frozen=True)

    a: str
    b: str
    strength: int
    documents: int


class GraphVisualization(BaseModel):
    model_config = ConfigDict(frozen=True)

    nodes: List[GraphNode] = Field(default_factory=list)
    edges: List[GraphEdge] = Field(default_factory=list)
