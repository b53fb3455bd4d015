"""Exception types raised by corpusgraph."""


class CorpusGraphError(Exception):
    """Base class for library errors."""


class DocumentValidationError(CorpusGraphError):
    """A document is missing an id or readable text."""


class RecordFormatError(CorpusGraphError):
    """A stored extraction record does not match any known source format."""


class EnrichmentError(CorpusGraphError):
    """The external enrichment call failed or returned an unusable payload."""


class IngestInProgressError(CorpusGraphError):
    """Graph queries were issued before the aggregation barrier was reached."""
