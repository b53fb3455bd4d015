"""Typed input documents and stored extraction records.

Two on-disk record formats are recognized:

- ``corpusgraph``: ``{"format": "corpusgraph", "document_id", "dataset_tag", "extraction"}``
  written by this package.
- ``legacy``: ``{"document": {...}, "entities": {...}, "processedAt"}`` files from
  the earlier ingestion tool.

Records are parsed through a tagged union and turned into an ``ExtractionResult``
by an explicit adapter per format.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    TypeAdapter,
    ValidationError,
)

from corpusgraph.errors import RecordFormatError
from corpusgraph.extraction.models import (
    DateMention,
    ExtractionResult,
    FlightMention,
    LocationMention,
    OrganizationMention,
    PersonMention,
    PhoneMention,
)

RECORD_FORMAT = "corpusgraph"


class Document(BaseModel):
    """Raw input text; never modified after creation."""

    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    dataset_tag: str = "Uncategorized"


class LocalExtractionRecord(BaseModel):
    model_config = ConfigDict(extra="forbid")

    format: Literal["corpusgraph"] = RECORD_FORMAT
    document_id: str
    dataset_tag: str = "Uncategorized"
    extraction: ExtractionResult
    processed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class LegacyDocumentInfo(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    filename: str = ""
    path: str = ""
    page_count: int = Field(default=0, alias="pageCount")
    dataset: str = "Uncategorized"


class LegacyPerson(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = ""
    role: Optional[str] = None
    context: Optional[str] = None


class LegacyLocation(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = ""
    type: Optional[str] = None


class LegacyDate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    date: str = ""
    event: Optional[str] = None


class LegacyFlight(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    origin: str = Field(alias="from")
    destination: str = Field(alias="to")
    date: Optional[str] = None
    passengers: List[str] = Field(default_factory=list)


class LegacyOrganization(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = ""


class LegacyEntities(BaseModel):
    model_config = ConfigDict(extra="ignore")

    people: List[LegacyPerson] = Field(default_factory=list)
    locations: List[LegacyLocation] = Field(default_factory=list)
    dates: List[LegacyDate] = Field(default_factory=list)
    flights: List[LegacyFlight] = Field(default_factory=list)
    phone_numbers: List[str] = Field(default_factory=list)
    organizations: List[LegacyOrganization] = Field(default_factory=list)


class LegacyEntityRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    document: LegacyDocumentInfo
    entities: LegacyEntities = Field(default_factory=LegacyEntities)
    processed_at: Optional[str] = Field(default=None, alias="processedAt")


def _record_tag(value: Any) -> str | None:
    if isinstance(value, dict):
        if value.get("format") == RECORD_FORMAT:
            return "corpusgraph"
        if "document" in value and "entities" in value:
            return "legacy"
        return None
    if isinstance(value, LocalExtractionRecord):
        return "corpusgraph"
    if isinstance(value, LegacyEntityRecord):
        return "legacy"
    return None


SourceRecord = Annotated[
    Union[
        Annotated[LocalExtractionRecord, Tag("corpusgraph")],
        Annotated[LegacyEntityRecord, Tag("legacy")],
    ],
    Discriminator(_record_tag),
]

_RECORD_ADAPTER: TypeAdapter[SourceRecord] = TypeAdapter(SourceRecord)


class AdaptedRecord(BaseModel):
    """A stored record reduced to what the aggregator consumes."""

    model_config = ConfigDict(frozen=True)

    document_id: str
    dataset_tag: str
    extraction: ExtractionResult


def parse_record(data: Any) -> LocalExtractionRecord | LegacyEntityRecord:
    """Validate a decoded JSON payload against the known record formats."""
    try:
        return _RECORD_ADAPTER.validate_python(data)
    except ValidationError as exc:
        raise RecordFormatError(f"Unrecognized extraction record: {exc.error_count()} error(s)") from exc


def adapt_record(record: LocalExtractionRecord | LegacyEntityRecord) -> AdaptedRecord:
    if isinstance(record, LocalExtractionRecord):
        return adapt_local_record(record)
    if isinstance(record, LegacyEntityRecord):
        return adapt_legacy_record(record)
    raise RecordFormatError(f"Unsupported record type: {type(record).__name__}")


def adapt_local_record(record: LocalExtractionRecord) -> AdaptedRecord:
    return AdaptedRecord(
        document_id=record.document_id,
        dataset_tag=record.dataset_tag,
        extraction=record.extraction,
    )


def adapt_legacy_record(record: LegacyEntityRecord) -> AdaptedRecord:
    entities = record.entities
    extraction = ExtractionResult(
        people=[
            PersonMention(name=p.name, context=p.context or "", role=p.role, source="legacy")
            for p in entities.people
            if p.name
        ],
        locations=[
            LocationMention(name=loc.name, kind=loc.type or "location", source="legacy")
            for loc in entities.locations
            if loc.name
        ],
        organizations=[
            OrganizationMention(name=org.name, source="legacy")
            for org in entities.organizations
            if org.name
        ],
        dates=[DateMention(date=d.date, raw=d.event or d.date) for d in entities.dates if d.date],
        flights=[
            FlightMention(
                origin=f.origin,
                destination=f.destination,
                date=f.date or "unknown",
                passengers=list(f.passengers),
            )
            for f in entities.flights
        ],
        phones=[PhoneMention(number=number) for number in entities.phone_numbers if number],
    )
    return AdaptedRecord(
        document_id=record.document.id,
        dataset_tag=record.document.dataset,
        extraction=extraction,
    )
