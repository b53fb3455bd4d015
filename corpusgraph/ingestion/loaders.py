"""Filesystem loaders for raw text documents and stored extraction records."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Iterable, Iterator, List, Optional

from loguru import logger

from corpusgraph.errors import RecordFormatError
from corpusgraph.extraction.models import ExtractionResult
from corpusgraph.ingestion.records import (
    Document,
    LegacyEntityRecord,
    LocalExtractionRecord,
    parse_record,
)

DEFAULT_SUFFIXES = (".txt", ".md")

_DATASET_RE = re.compile(r"DataSet (\d+)", re.IGNORECASE)
_DATASET_MARKERS = (
    ("Flight Log", "Flight Logs"),
    ("Contact Book", "Contact Book"),
    ("Masseuse List", "Masseuse List"),
    ("Evidence List", "Evidence List"),
    ("DOJ", "DOJ Reports"),
    ("OIG", "DOJ Reports"),
)


def document_id_from_path(path: Path | str) -> str:
    """File stem lowercased with every non-alphanumeric character replaced by ``_``."""
    return re.sub(r"[^a-z0-9]", "_", Path(path).stem.lower())


def dataset_from_path(path: Path | str) -> str:
    text = str(path)
    match = _DATASET_RE.search(text)
    if match:
        return f"Dataset {match.group(1)}"
    for marker, tag in _DATASET_MARKERS:
        if marker in text:
            return tag
    return "Uncategorized"


def iter_text_documents(
    directory: Path | str,
    suffixes: Iterable[str] = DEFAULT_SUFFIXES,
    *,
    errors: Optional[List[str]] = None,
) -> Iterator[Document]:
    """Yield a ``Document`` per text file under ``directory``, sorted by path.

    A missing directory yields nothing. Unreadable files are logged, appended to
    ``errors`` when given, and skipped.
    """
    root = Path(directory)
    if not root.is_dir():
        logger.warning("Document directory not found: {}", root)
        return

    wanted = {suffix.lower() for suffix in suffixes}
    paths = sorted(p for p in root.rglob("*") if p.is_file() and p.suffix.lower() in wanted)
    logger.info("Found {} text files under {}", len(paths), root)

    for path in paths:
        try:
            try:
                text = path.read_text(encoding="utf-8")
            except UnicodeDecodeError:
                text = path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            logger.warning("Skipping unreadable document {}: {}", path, exc)
            if errors is not None:
                errors.append(str(path))
            continue

        yield Document(
            id=document_id_from_path(path),
            text=text,
            dataset_tag=dataset_from_path(path.relative_to(root)),
        )


def load_extraction_records(
    directory: Path | str,
    *,
    errors: Optional[List[str]] = None,
) -> Iterator[LocalExtractionRecord | LegacyEntityRecord]:
    """Yield parsed records from every ``*.json`` file in ``directory``.

    Malformed files are logged and skipped; a missing directory yields nothing.
    """
    root = Path(directory)
    if not root.is_dir():
        logger.warning("Entity record directory not found: {}", root)
        return

    paths = sorted(root.glob("*.json"))
    logger.info("Found {} entity record files in {}", len(paths), root)
    for path in paths:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            yield parse_record(data)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, RecordFormatError) as exc:
            logger.warning("Skipping malformed record {}: {}", path.name, exc)
            if errors is not None:
                errors.append(str(path))


def save_extraction_record(
    directory: Path | str,
    document_id: str,
    extraction: ExtractionResult,
    dataset_tag: str = "Uncategorized",
) -> Path:
    """Write one document's extraction as ``<directory>/<document_id>.json``."""
    root = Path(directory)
    root.mkdir(parents=True, exist_ok=True)
    record = LocalExtractionRecord(
        document_id=document_id,
        dataset_tag=dataset_tag,
        extraction=extraction,
    )
    path = root / f"{document_id}.json"
    path.write_text(record.model_dump_json(indent=2), encoding="utf-8")
    return path
