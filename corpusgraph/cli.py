"""Command line interface: ingest a corpus, inspect entities and run discoveries."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from typing import List, Optional, Sequence

import typer
from rich.console import Console
from rich.table import Table

from corpusgraph.graph.models import Connection, Entity
from corpusgraph.pipeline.corpus_pipeline import CorpusPipeline, IngestionResult
from corpusgraph.schemas import EntityType
from corpusgraph.utils.config import Config, load_config
from corpusgraph.utils.logging_setup import configure_logging

app = typer.Typer(help="Build an entity co-occurrence graph from a document corpus.")

console = Console(color_system=None, force_terminal=False, width=120)

_CONFIG_OPTION = typer.Option(Path("config/config.yaml"), help="Path to config file.")
_DOCUMENTS_OPTION = typer.Option(None, help="Directory of .txt/.md documents to extract.")
_RECORDS_OPTION = typer.Option(None, help="Directory of JSON extraction records to load.")
_VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Enable debug logging.")


def _load(config_path: Path) -> Config:
    return load_config(config_path)


def _parse_type(value: str | None) -> EntityType | None:
    if not value:
        return None
    try:
        return EntityType(value.lower())
    except ValueError:
        choices = ", ".join(t.value for t in EntityType)
        raise typer.BadParameter(f"Unknown entity type '{value}' (expected one of: {choices})") from None


def _build_pipeline(config_path: Path, verbose: bool) -> CorpusPipeline:
    cfg = _load(config_path)
    configure_logging(cfg.logging, verbose=verbose)
    return CorpusPipeline(cfg)


def _load_corpus(
    pipeline: CorpusPipeline, documents: Optional[Path], records: Optional[Path]
) -> List[IngestionResult]:
    """Ingest the requested sources; fall back to the configured paths."""
    results: List[IngestionResult] = []
    if records is None and documents is None:
        cfg = pipeline.config
        if cfg.records_path.is_dir():
            records = cfg.records_path
        else:
            documents = cfg.documents_path
    if records is not None:
        results.extend(pipeline.load_records_directory(records))
    if documents is not None:
        results.extend(pipeline.ingest_directory(documents))
    return results


def _render_entities(entities: Sequence[Entity], *, title: str) -> None:
    table = Table(title=title)
    table.add_column("Name", style="cyan")
    table.add_column("Type")
    table.add_column("Mentions", justify="right")
    table.add_column("Docs", justify="right")
    table.add_column("Id")
    for entity in entities:
        table.add_row(
            entity.display_name,
            entity.type.value,
            str(entity.occurrences),
            str(entity.document_count),
            entity.id,
        )
    console.print(table)


def _render_connections(connections: Sequence[Connection], *, title: str) -> None:
    table = Table(title=title)
    table.add_column("A", style="cyan")
    table.add_column("B", style="cyan")
    table.add_column("Strength", justify="right")
    for connection in connections:
        table.add_row(connection.a_name, connection.b_name, str(connection.strength))
    console.print(table)


@app.command("ingest")
def ingest(
    documents: Path = typer.Argument(..., help="Directory of text documents."),
    save_records: Optional[Path] = typer.Option(
        None, help="Write one JSON extraction record per document to this directory."
    ),
    config: Path = _CONFIG_OPTION,
    verbose: bool = _VERBOSE_OPTION,
) -> None:
    """Extract entities from a directory of documents and print a summary."""
    pipeline = _build_pipeline(config, verbose)
    results = pipeline.ingest_directory(documents, save_records_to=save_records)

    succeeded = [r for r in results if r.success]
    table = Table(title=f"Ingested {len(succeeded)}/{len(results)} documents")
    table.add_column("Document", style="cyan")
    table.add_column("People", justify="right")
    table.add_column("Locations", justify="right")
    table.add_column("Dates", justify="right")
    table.add_column("Flights", justify="right")
    table.add_column("Status")
    for result in results:
        counts = result.entity_counts
        status = "failed" if not result.success else ("skipped" if result.skipped else "ok")
        if result.enriched:
            status += " (enriched)"
        table.add_row(
            result.document_id,
            str(counts.get("people", 0)),
            str(counts.get("locations", 0)),
            str(counts.get("dates", 0)),
            str(counts.get("flights", 0)),
            status,
        )
    console.print(table)
    stats = pipeline.stats
    console.print(
        f"Local-only: {stats['local_extractions']} | Enriched: {stats['enriched_extractions']} "
        f"| Failed: {stats['documents_failed']}"
    )


@app.command("entities")
def entities(
    entity_type: Optional[str] = typer.Option(None, "--type", help="Filter by entity type."),
    search: Optional[str] = typer.Option(None, help="Case-insensitive name search."),
    limit: int = typer.Option(20, help="Max rows to display.", min=1),
    documents: Optional[Path] = _DOCUMENTS_OPTION,
    records: Optional[Path] = _RECORDS_OPTION,
    config: Path = _CONFIG_OPTION,
    verbose: bool = _VERBOSE_OPTION,
) -> None:
    """List the most mentioned entities, or search them by name."""
    wanted = _parse_type(entity_type)
    pipeline = _build_pipeline(config, verbose)
    _load_corpus(pipeline, documents, records)

    if search:
        found = pipeline.search_entities(search, limit, wanted)
        if not found:
            console.print("[yellow]No matches found.[/yellow]")
            return
        _render_entities(found, title=f"Entities matching '{search}'")
        return

    _render_entities(pipeline.get_top_entities(limit, wanted), title="Top Entities")


@app.command("connections")
def connections(
    entity: Optional[str] = typer.Option(None, help="Only connections touching this entity id."),
    limit: int = typer.Option(20, help="Max rows to display.", min=1),
    documents: Optional[Path] = _DOCUMENTS_OPTION,
    records: Optional[Path] = _RECORDS_OPTION,
    config: Path = _CONFIG_OPTION,
    verbose: bool = _VERBOSE_OPTION,
) -> None:
    """Show the strongest co-occurrence connections."""
    pipeline = _build_pipeline(config, verbose)
    _load_corpus(pipeline, documents, records)

    if entity:
        found = pipeline.get_entity_connections(entity)[:limit]
        title = f"Connections of {entity}"
    else:
        found = pipeline.get_strongest_connections(limit)
        title = "Strongest Connections"
    if not found:
        console.print("[yellow]No connections found.[/yellow]")
        return
    _render_connections(found, title=title)


@app.command("metrics")
def metrics(
    documents: Optional[Path] = _DOCUMENTS_OPTION,
    records: Optional[Path] = _RECORDS_OPTION,
    config: Path = _CONFIG_OPTION,
    verbose: bool = _VERBOSE_OPTION,
) -> None:
    """Print corpus-level counters."""
    pipeline = _build_pipeline(config, verbose)
    _load_corpus(pipeline, documents, records)

    values = pipeline.get_system_metrics().model_dump(exclude={"computed_at"})
    table = Table(title="Corpus Metrics")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    for key, value in values.items():
        table.add_row(key, str(value))
    console.print(table)


@app.command("discover")
def discover(
    output_dir: Optional[Path] = typer.Option(
        None, help="Report directory (default: <reports_path>/<timestamp>)."
    ),
    documents: Optional[Path] = _DOCUMENTS_OPTION,
    records: Optional[Path] = _RECORDS_OPTION,
    config: Path = _CONFIG_OPTION,
    verbose: bool = _VERBOSE_OPTION,
) -> None:
    """Run every discovery heuristic and write JSON and Markdown reports."""
    pipeline = _build_pipeline(config, verbose)
    _load_corpus(pipeline, documents, records)

    report = pipeline.build_report()
    if output_dir is None:
        timestamp = datetime.now(UTC).strftime("%Y%m%d_%H%M%S")
        output_dir = pipeline.config.reports_path / timestamp
    report.write(output_dir)

    if not report.discoveries:
        console.print("[yellow]No discoveries above the configured thresholds.[/yellow]")
    else:
        table = Table(title=f"{len(report.discoveries)} Discoveries")
        table.add_column("Severity")
        table.add_column("Type")
        table.add_column("Title", style="cyan")
        for discovery in report.discoveries:
            table.add_row(discovery.severity.value, discovery.type.value, discovery.title)
        console.print(table)
    console.print(f"Report: {report.artifacts.get('report_markdown')}")


@app.command("variants")
def variants(
    entity_type: Optional[str] = typer.Option(None, "--type", help="Filter by entity type."),
    documents: Optional[Path] = _DOCUMENTS_OPTION,
    records: Optional[Path] = _RECORDS_OPTION,
    config: Path = _CONFIG_OPTION,
    verbose: bool = _VERBOSE_OPTION,
) -> None:
    """List groups of entities whose names look like spellings of one another."""
    wanted = _parse_type(entity_type)
    pipeline = _build_pipeline(config, verbose)
    _load_corpus(pipeline, documents, records)

    groups = pipeline.find_name_variants(wanted)
    if not groups:
        console.print("[yellow]No name variants found.[/yellow]")
        return
    table = Table(title="Name Variants")
    table.add_column("Canonical", style="cyan")
    table.add_column("Type")
    table.add_column("Variants")
    table.add_column("Mentions", justify="right")
    table.add_column("Conf", justify="right")
    for group in groups:
        table.add_row(
            group.canonical_name,
            group.entity_type,
            ", ".join(v.name for v in group.variations),
            str(group.total_mentions),
            f"{group.confidence:.2f}",
        )
    console.print(table)


if __name__ == "__main__":
    app()
