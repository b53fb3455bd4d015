from __future__ import annotations

import json
from pathlib import Path

from corpusgraph.extraction.models import ExtractionResult, PersonMention
from corpusgraph.ingestion.loaders import (
    dataset_from_path,
    document_id_from_path,
    iter_text_documents,
    load_extraction_records,
    save_extraction_record,
)
from corpusgraph.ingestion.records import LocalExtractionRecord


def test_document_id_from_path() -> None:
    assert document_id_from_path("data/Flight Log 001.txt") == "flight_log_001"
    assert document_id_from_path(Path("EFTA-0042.md")) == "efta_0042"


def test_dataset_from_path() -> None:
    assert dataset_from_path("DataSet 9/page.txt") == "Dataset 9"
    assert dataset_from_path("Flight Log 001.txt") == "Flight Logs"
    assert dataset_from_path("OIG review.txt") == "DOJ Reports"
    assert dataset_from_path("misc/notes.txt") == "Uncategorized"


def test_iter_text_documents_sorted_and_filtered(tmp_path: Path) -> None:
    (tmp_path / "DataSet 2").mkdir()
    (tmp_path / "DataSet 2" / "b.txt").write_text("second", encoding="utf-8")
    (tmp_path / "a.md").write_text("first", encoding="utf-8")
    (tmp_path / "ignored.pdf").write_text("binary", encoding="utf-8")
    (tmp_path / "latin.txt").write_bytes(b"caf\xe9")

    documents = list(iter_text_documents(tmp_path))

    assert [d.id for d in documents] == ["b", "a", "latin"]
    assert documents[0].dataset_tag == "Dataset 2"
    assert documents[1].text == "first"
    assert documents[2].text.startswith("caf")


def test_missing_directory_yields_nothing(tmp_path: Path) -> None:
    assert list(iter_text_documents(tmp_path / "missing")) == []
    assert list(load_extraction_records(tmp_path / "missing")) == []


def test_records_round_trip_and_malformed_files_are_skipped(tmp_path: Path) -> None:
    extraction = ExtractionResult(people=[PersonMention(name="Bill Clinton")])
    path = save_extraction_record(tmp_path, "doc1", extraction, "Dataset 1")
    (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")
    (tmp_path / "other.json").write_text(json.dumps({"hello": "world"}), encoding="utf-8")

    errors: list[str] = []
    records = list(load_extraction_records(tmp_path, errors=errors))

    assert path.name == "doc1.json"
    assert len(records) == 1
    assert isinstance(records[0], LocalExtractionRecord)
    assert records[0].extraction.people[0].name == "Bill Clinton"
    assert sorted(Path(e).name for e in errors) == ["broken.json", "other.json"]
