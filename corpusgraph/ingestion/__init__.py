"""Document and extraction-record ingestion."""

from corpusgraph.ingestion.loaders import (
    dataset_from_path,
    document_id_from_path,
    iter_text_documents,
    load_extraction_records,
    save_extraction_record,
)
from corpusgraph.ingestion.records import (
    AdaptedRecord,
    Document,
    LegacyEntityRecord,
    LocalExtractionRecord,
    adapt_record,
    parse_record,
)

__all__ = [
    "AdaptedRecord",
    "Document",
    "LegacyEntityRecord",
    "LocalExtractionRecord",
    "adapt_record",
    "dataset_from_path",
    "document_id_from_path",
    "iter_text_documents",
    "load_extraction_records",
    "parse_record",
    "save_extraction_record",
]
