# =============================================================================
# Error Taxonomy - Upload and Analysis Pipeline
# =============================================================================
#
# Errors raised BEFORE an analysis record exists are surfaced to the HTTP
# caller (see `status_code`). Errors raised AFTER the record exists never
# reach the caller; the background task writes them into the record.
#
#   AnalyzerError
#   ├── InvalidInputError       - 400, missing/unsupported upload
#   ├── ExtractionError         - 400, unreadable or too-sparse document
#   │   ├── UnsupportedFormatError
#   │   └── ParseError
#   ├── MetadataError           - 502, metadata LLM step failed
#   ├── ProviderError           - recorded on the record, never over HTTP
#   │   └── ProviderTimeoutError
#   └── RecordNotFoundError     - store invariant violation (a bug)
# =============================================================================


class AnalyzerError(Exception):
    """Base exception for the analyzer service."""

    status_code: int = 500


class InvalidInputError(AnalyzerError):
    """Malformed or missing request data."""

    status_code = 400


class ExtractionError(AnalyzerError):
    """The uploaded document could not be turned into usable text."""

    status_code = 400


class UnsupportedFormatError(ExtractionError):
    """No text extractor exists for the declared MIME type."""


class ParseError(ExtractionError):
    """The extractor library failed to read the document."""


class MetadataError(AnalyzerError):
    """The metadata extraction call failed or returned unusable output."""

    status_code = 502


class ProviderError(AnalyzerError):
    """The analysis LLM call failed."""

    status_code = 502


class ProviderTimeoutError(ProviderError):
    """The analysis LLM call exceeded its wall-clock budget."""

    def __init__(self, message: str = "timeout") -> None:
        super().__init__(message)


class RecordNotFoundError(AnalyzerError, KeyError):
    """An update targeted an analysis id the store has never seen."""

    status_code = 404

    def __init__(self, record_id: str) -> None:
        super().__init__(f"Analysis record not found: {record_id}")
        self.record_id = record_id

    def __str__(self) -> str:
        return self.args[0]
