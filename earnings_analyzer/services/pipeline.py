# =============================================================================
# Upload Pipeline - Synchronous Half of Upload-and-Analyze
# =============================================================================
#
# PIPELINE:
#   1. Validate the upload, extract text      → InvalidInputError /
#                                                ExtractionError
#   2. Derive filing metadata via the LLM     → MetadataError
#   3. Add a "processing" record to the store (cannot fail)
#   4. Hand back an AnalysisJob for the caller to schedule; it is NOT run here
#
# Steps 1-2 raise before any record exists, so a rejected upload never
# leaves an orphaned "processing" entry. The request handler schedules the
# returned job to run after its response is sent, which guarantees the
# client receives the record id before any terminal update can happen.
# =============================================================================

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Collection
from dataclasses import dataclass

from earnings_analyzer.agents.extractor import extract_metadata
from earnings_analyzer.config import settings
from earnings_analyzer.exceptions import (
    AnalyzerError,
    ExtractionError,
    InvalidInputError,
    MetadataError,
)
from earnings_analyzer.models.analysis import AnalysisRecord, CompanyType, ReportMetadata
from earnings_analyzer.services.llm import LLMProvider
from earnings_analyzer.services.parser import extract_text
from earnings_analyzer.services.store import AnalysisStore
from earnings_analyzer.workers.tasks import AnalysisJob

logger = logging.getLogger(__name__)

TextExtractor = Callable[[bytes, str, str], str]
MetadataExtractor = Callable[[str, LLMProvider], Awaitable[ReportMetadata]]


@dataclass
class UploadOutcome:
    """Result of the synchronous half: the new record and its pending job."""

    record: AnalysisRecord
    metadata: ReportMetadata
    job: AnalysisJob


class UploadPipeline:
    """
    Sequences extraction → metadata → store insert for one upload.

    Collaborators are injectable so tests can replace the parser and the
    metadata LLM call without patching modules.
    """

    def __init__(
        self,
        store: AnalysisStore,
        llm: LLMProvider,
        text_extractor: TextExtractor = extract_text,
        metadata_extractor: MetadataExtractor = extract_metadata,
        accepted_mime_types: Collection[str] | None = None,
        min_text_length: int | None = None,
        max_upload_bytes: int | None = None,
    ) -> None:
        self._store = store
        self._llm = llm
        self._extract_text = text_extractor
        self._extract_metadata = metadata_extractor
        self._accepted = frozenset(
            settings.accepted_mime_types
            if accepted_mime_types is None else accepted_mime_types
        )
        self._min_text_length = (
            settings.min_text_length if min_text_length is None else min_text_length
        )
        self._max_upload_bytes = (
            settings.max_upload_bytes if max_upload_bytes is None else max_upload_bytes
        )

    async def accept(
        self,
        data: bytes | None,
        mime_type: str | None,
        company_type: CompanyType,
        filename: str | None = None,
    ) -> UploadOutcome:
        """
        Run steps 1-3 and return the created record with its pending job.

        Raises:
            InvalidInputError: No file, empty file, oversized file or a MIME
                type outside the accepted set.
            ExtractionError: Text could not be extracted or is too short.
            MetadataError: The metadata step failed.
        """
        name = filename or "upload"
        self._validate(data, mime_type)

        logger.info(
            "[Upload] %s (%s, %d bytes), company_type=%s",
            name, mime_type, len(data), company_type.value,
        )

        # --- Step 1: extract text (CPU-bound, off the event loop) ---
        logger.info("[Upload] Extracting text...")
        try:
            report_text = await asyncio.to_thread(
                self._extract_text, data, mime_type, name,
            )
        except AnalyzerError:
            raise
        except Exception as exc:
            raise ExtractionError(f"Could not extract text: {exc}") from exc

        if not report_text or len(report_text.strip()) < self._min_text_length:
            logger.warning(
                "[Upload] Extracted text too short (%d chars) from %s",
                len(report_text.strip()) if report_text else 0, name,
            )
            raise ExtractionError("Could not extract text from document")

        # --- Step 2: metadata (blocks the response) ---
        logger.info("[Upload] Extracting metadata with AI...")
        try:
            metadata = await self._extract_metadata(report_text, self._llm)
        except AnalyzerError:
            raise
        except Exception as exc:
            raise MetadataError(f"Metadata extraction failed: {exc}") from exc

        # --- Step 3: processing record ---
        record = self._store.add({
            "company_name": metadata.company_name,
            "company_symbol": metadata.company_symbol,
            "company_type": company_type,
            "report_type": metadata.report_type,
            "fiscal_year": metadata.fiscal_year,
            "fiscal_quarter": metadata.fiscal_quarter,
            "filing_date": metadata.filing_date,
            "processing": True,
            "processed": False,
        })
        logger.info("[Upload] Created processing entry: %s", record.id)

        job = AnalysisJob(
            record_id=record.id,
            report_text=report_text,
            metadata=metadata,
            company_type=company_type,
            document_size=len(data),
        )
        return UploadOutcome(record=record, metadata=metadata, job=job)

    def _validate(self, data: bytes | None, mime_type: str | None) -> None:
        if not data:
            raise InvalidInputError("No file uploaded")
        if len(data) > self._max_upload_bytes:
            raise InvalidInputError(
                f"File exceeds the {self._max_upload_bytes // (1024 * 1024)} MB limit"
            )
        if mime_type not in self._accepted:
            if self._accepted == {"application/pdf"}:
                raise InvalidInputError("Only PDF files are supported")
            raise InvalidInputError(
                f"Unsupported file type: {mime_type}. "
                f"Accepted: {', '.join(sorted(self._accepted))}"
            )
