"""Entity co-occurrence graph and discovery analytics for document corpora."""

from corpusgraph.ingestion.records import Document
from corpusgraph.pipeline.corpus_pipeline import CorpusPipeline
from corpusgraph.schemas import DiscoveryType, EntityType, Severity

__version__ = "0.1.0"

__all__ = ["CorpusPipeline", "DiscoveryType", "Document", "EntityType", "Severity", "__version__"]
