# =============================================================================
# Background Analysis Task - Terminal Update of an Analysis Record
# =============================================================================
#
# Runs after the upload response has been sent (scheduled through FastAPI
# BackgroundTasks by api/reports.py). It owns the single terminal update of
# one record:
#
#   analyse_report() succeeds → {processing: False, processed: True, ...}
#   analyse_report() raises   → {processing: False, processed: False,
#                                error: <message>}
#
# The task never raises: the HTTP response is gone, so failures are only
# observable through the record's `error` field. A RecordNotFoundError from
# the terminal update means the record was never added, which is an
# orchestration bug and is logged at error level.
#
# No retries: a failed record stays failed until a new upload is submitted.
# =============================================================================

from __future__ import annotations

import logging
from dataclasses import dataclass

from earnings_analyzer.agents.analyst import analyse_report
from earnings_analyzer.config import settings
from earnings_analyzer.exceptions import RecordNotFoundError
from earnings_analyzer.models.analysis import (
    AnalysisPatch,
    AnalysisResult,
    CompanyType,
    ReportMetadata,
)
from earnings_analyzer.services.llm import LLMProvider
from earnings_analyzer.services.store import AnalysisStore

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "Analysis failed"


@dataclass
class AnalysisJob:
    """Everything the background task needs, captured at upload time."""

    record_id: str
    report_text: str
    metadata: ReportMetadata
    company_type: CompanyType
    document_size: int | None = None


async def run_analysis_job(
    job: AnalysisJob,
    store: AnalysisStore,
    llm: LLMProvider,
    persist: bool | None = None,
) -> None:
    """
    Run the analysis for one record and write its terminal state.

    Args:
        job: Captured upload data (record id, text, metadata, company type).
        store: The registry holding the record created at upload time.
        llm: Provider for the analysis call.
        persist: Also write successful analyses to durable storage
            (default: settings.persistence_enabled).
    """
    metadata = job.metadata
    logger.info(
        "[Background] Starting analysis %s for %s...",
        job.record_id, metadata.company_name,
    )

    try:
        result = await analyse_report(
            job.report_text, metadata, job.company_type, llm,
        )
    except Exception as exc:
        logger.exception("[Background] Analysis failed for %s", job.record_id)
        _write_terminal(
            store, job.record_id,
            AnalysisPatch.failure(str(exc) or DEFAULT_ERROR_MESSAGE),
        )
        return

    if not _write_terminal(store, job.record_id, AnalysisPatch.success(result)):
        return
    logger.info("[Background] Analysis complete: %s", job.record_id)

    if settings.persistence_enabled if persist is None else persist:
        await _persist(job, result)


def _write_terminal(store: AnalysisStore, record_id: str, patch: AnalysisPatch) -> bool:
    try:
        store.update(record_id, patch)
    except RecordNotFoundError:
        logger.error(
            "[Background] Terminal update targeted unknown record %s; the "
            "record must be added before its analysis is scheduled",
            record_id,
        )
        return False
    return True


async def _persist(job: AnalysisJob, result: AnalysisResult) -> None:
    """Write a completed analysis to durable storage; failures are logged only."""
    from earnings_analyzer.db.engine import session_scope
    from earnings_analyzer.db.queries import persist_analysis

    try:
        async with session_scope() as session:
            await persist_analysis(
                session,
                job.metadata,
                job.company_type,
                result,
                document_size=job.document_size,
            )
    except Exception:
        logger.exception(
            "[Background] Failed to persist analysis %s", job.record_id,
        )
