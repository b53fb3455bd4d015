"""Serializable discovery report (JSON + Markdown)."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Dict, List

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from corpusgraph.graph.models import (
    Cluster,
    Connection,
    Discovery,
    Entity,
    GeographicPattern,
    HubRanking,
    SystemMetrics,
)
from corpusgraph.normalization.variant_matcher import VariantGroup


class DiscoveryReport(BaseModel):
    model_config = ConfigDict(extra="ignore")

    generated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    parameters: Dict[str, Any] = Field(default_factory=dict)
    stats: Dict[str, int] = Field(default_factory=dict)
    metrics: SystemMetrics = Field(default_factory=SystemMetrics)
    discoveries: List[Discovery] = Field(default_factory=list)
    clusters: List[Cluster] = Field(default_factory=list)
    hubs: List[HubRanking] = Field(default_factory=list)
    geographic_patterns: List[GeographicPattern] = Field(default_factory=list)
    strongest_connections: List[Connection] = Field(default_factory=list)
    top_entities: List[Entity] = Field(default_factory=list)
    name_variants: List[VariantGroup] = Field(default_factory=list)
    artifacts: Dict[str, str] = Field(default_factory=dict)

    def to_markdown(self) -> str:
        lines: list[str] = []
        lines.append("# Corpus Discovery Report")
        lines.append("")
        lines.append(f"Generated at: `{self.generated_at.isoformat()}`")
        if self.parameters:
            lines.append("")
            lines.append("## Parameters")
            lines.append("")
            for key in sorted(self.parameters):
                lines.append(f"- `{key}`: `{self.parameters[key]}`")

        lines.append("")
        lines.append("## Corpus Metrics")
        lines.append("")
        metrics = self.metrics.model_dump(exclude={"computed_at"})
        for key in sorted(metrics):
            lines.append(f"- **{key}**: {metrics[key]}")
        if self.stats:
            lines.append("")
            lines.append("### Extraction Stats")
            lines.append("")
            for key in sorted(self.stats):
                lines.append(f"- **{key}**: {self.stats[key]}")

        if self.discoveries:
            lines.append("")
            lines.append("## Discoveries")
            lines.append("")
            for discovery in self.discoveries:
                lines.append(f"- [{discovery.severity.value}] **{discovery.title}**: {discovery.description}")

        if self.hubs:
            lines.append("")
            lines.append("## Most Connected")
            lines.append("")
            max_weight = max(hub.connections for hub in self.hubs)
            for hub in self.hubs:
                bar = self._ascii_bar(hub.connections, max_weight)
                lines.append(f"- `{hub.name}`: connections={hub.connections}, documents={hub.documents} {bar}")

        if self.clusters:
            lines.append("")
            lines.append("## Network Clusters")
            lines.append("")
            for cluster in self.clusters[:15]:
                members = ", ".join(f"`{name}`" for name in cluster.member_names[:10])
                suffix = "..." if cluster.size > 10 else ""
                lines.append(
                    f"- {cluster.id} (size={cluster.size}, avg={cluster.avg_edge_weight:.2f}): {members}{suffix}"
                )

        if self.geographic_patterns:
            lines.append("")
            lines.append("## Geographic Patterns")
            lines.append("")
            for pattern in self.geographic_patterns[:15]:
                lines.append(
                    f"- `{pattern.location}`: {len(pattern.people)} people, "
                    f"{len(pattern.document_ids)} documents ({', '.join(pattern.people[:5])})"
                )

        if self.strongest_connections:
            lines.append("")
            lines.append("## Strongest Connections")
            lines.append("")
            for connection in self.strongest_connections:
                lines.append(f"- `{connection.a_name}` ↔ `{connection.b_name}`: strength={connection.strength}")

        if self.top_entities:
            lines.append("")
            lines.append("## Top Entities")
            lines.append("")
            for entity in self.top_entities:
                lines.append(
                    f"- `{entity.display_name}` ({entity.type.value}): mentions={entity.occurrences}, "
                    f"documents={entity.document_count}"
                )

        if self.name_variants:
            lines.append("")
            lines.append("## Name Variants")
            lines.append("")
            for group in self.name_variants[:50]:
                names = ", ".join(f"`{v.name}`" for v in group.variations)
                lines.append(f"- `{group.canonical_name}` ({group.entity_type}, conf={group.confidence:.2f}): {names}")

        if self.artifacts:
            lines.append("")
            lines.append("## Artifacts")
            lines.append("")
            for key in sorted(self.artifacts):
                lines.append(f"- `{key}`: `{self.artifacts[key]}`")
        lines.append("")
        return "\n".join(lines)

    def write(self, output_dir: str | Path) -> DiscoveryReport:
        """Write ``discovery_report.json`` and ``discovery_report.md`` and record their paths."""
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        json_path = output_dir / "discovery_report.json"
        markdown_path = output_dir / "discovery_report.md"

        self.artifacts = {
            "report_json": str(json_path),
            "report_markdown": str(markdown_path),
        }
        json_path.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        markdown_path.write_text(self.to_markdown(), encoding="utf-8")

        logger.info(
            "Discovery report written to {} ({} discoveries, {} clusters)",
            output_dir,
            len(self.discoveries),
            len(self.clusters),
        )
        return self

    def _ascii_bar(self, value: int, max_value: int, width: int = 20) -> str:
        if max_value <= 0:
            return ""
        filled = int(round((value / max_value) * width))
        return "█" * filled + "░" * (width - filled)
