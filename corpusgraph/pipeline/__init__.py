"""Corpus pipeline orchestration and reports."""

from corpusgraph.pipeline.corpus_pipeline import CorpusPipeline, IngestionResult
from corpusgraph.pipeline.report import DiscoveryReport

__all__ = ["CorpusPipeline", "DiscoveryReport", "IngestionResult"]
