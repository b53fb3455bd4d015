from __future__ import annotations

import pytest

from corpusgraph.errors import RecordFormatError
from corpusgraph.extraction.models import ExtractionResult, PersonMention
from corpusgraph.ingestion.records import (
    LegacyEntityRecord,
    LocalExtractionRecord,
    adapt_record,
    parse_record,
)

LEGACY_PAYLOAD = {
    "document": {
        "id": "flight_log_001",
        "filename": "Flight Log 001.txt",
        "path": "data/Flight Log 001.txt",
        "pageCount": 3,
        "dataset": "Flight Logs",
    },
    "entities": {
        "people": [
            {"name": "Jeffrey Epstein", "role": "passenger", "context": "on board"},
            {"name": "", "role": "unknown"},
        ],
        "locations": [{"name": "Palm Beach", "type": "city"}],
        "dates": [{"date": "2002-07-04", "event": "departure"}],
        "flights": [{"from": "TEB", "to": "PBI", "date": "2002-07-04", "passengers": ["JE"]}],
        "phone_numbers": ["212-555-0100"],
        "organizations": [{"name": "Acme Aviation"}],
    },
    "processedAt": "2024-01-01T00:00:00Z",
}


def test_legacy_record_is_recognized_and_adapted() -> None:
    record = parse_record(LEGACY_PAYLOAD)

    assert isinstance(record, LegacyEntityRecord)
    assert record.document.page_count == 3

    adapted = adapt_record(record)

    assert adapted.document_id == "flight_log_001"
    assert adapted.dataset_tag == "Flight Logs"
    extraction = adapted.extraction
    assert [p.name for p in extraction.people] == ["Jeffrey Epstein"]
    assert extraction.people[0].role == "passenger"
    assert extraction.people[0].source == "legacy"
    assert [(loc.name, loc.kind) for loc in extraction.locations] == [("Palm Beach", "city")]
    assert [(d.date, d.raw) for d in extraction.dates] == [("2002-07-04", "departure")]
    flight = extraction.flights[0]
    assert (flight.origin, flight.destination, flight.passengers) == ("TEB", "PBI", ["JE"])
    assert [p.number for p in extraction.phones] == ["212-555-0100"]
    assert [o.name for o in extraction.organizations] == ["Acme Aviation"]


def test_local_record_round_trip() -> None:
    original = LocalExtractionRecord(
        document_id="doc1",
        dataset_tag="Dataset 9",
        extraction=ExtractionResult(people=[PersonMention(name="Bill Clinton", confidence=0.7)]),
    )

    record = parse_record(original.model_dump(mode="json"))

    assert isinstance(record, LocalExtractionRecord)
    adapted = adapt_record(record)
    assert adapted.document_id == "doc1"
    assert adapted.dataset_tag == "Dataset 9"
    assert adapted.extraction.people[0].name == "Bill Clinton"


@pytest.mark.parametrize(
    "payload",
    [
        {"unexpected": True},
        {"format": "corpusgraph", "document_id": "doc1"},
        {"document": {"filename": "no id"}, "entities": {}},
        ["not", "a", "record"],
    ],
)
def test_unknown_payloads_raise(payload) -> None:
    with pytest.raises(RecordFormatError):
        parse_record(payload)
