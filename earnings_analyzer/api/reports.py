# =============================================================================
# Reports API - Upload and Lookup
# =============================================================================
#
# ENDPOINTS:
#   POST /reports/upload         - Upload a report, start background analysis
#   GET  /reports/{analysis_id}  - One analysis record from the store
#   GET  /reports                - Companies + reports + latest analysis
#                                  (durable storage only)
#
# POST /reports/upload returns 202 Accepted as soon as the record exists.
# The analysis itself is scheduled with BackgroundTasks, which Starlette
# runs only after the response has been sent; its outcome is visible only
# through the record.
# =============================================================================

import logging

from fastapi import (
    APIRouter,
    BackgroundTasks,
    Depends,
    File,
    Form,
    HTTPException,
    UploadFile,
)
from sqlalchemy.ext.asyncio import AsyncSession

from earnings_analyzer.api.deps import get_llm, get_pipeline, get_store
from earnings_analyzer.config import settings
from earnings_analyzer.db.engine import get_async_session
from earnings_analyzer.db.queries import list_companies_with_reports
from earnings_analyzer.models.analysis import AnalysisRecord, CompanyType
from earnings_analyzer.models.responses import (
    CompaniesResponse,
    ErrorResponse,
    UploadResponse,
)
from earnings_analyzer.services.llm import LLMProvider
from earnings_analyzer.services.pipeline import UploadPipeline
from earnings_analyzer.services.store import AnalysisStore
from earnings_analyzer.workers.tasks import run_analysis_job

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["Reports"])

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid or unreadable upload"},
    502: {"model": ErrorResponse, "description": "Metadata extraction failed"},
    503: {"model": ErrorResponse, "description": "LLM provider not configured"},
}


# ---------------------------------------------------------------------------
# POST /reports/upload - Upload a financial report
# ---------------------------------------------------------------------------


@router.post(
    "/upload",
    response_model=UploadResponse,
    status_code=202,
    responses=_ERROR_RESPONSES,
    summary="Upload a financial report for analysis",
    description=(
        "Extracts text and filing metadata, creates an analysis record in "
        "the 'processing' state and returns its id immediately. The full "
        "analysis runs in the background."
    ),
)
async def upload_report(
    background_tasks: BackgroundTasks,
    file: UploadFile | None = File(
        default=None,
        description="Report document (PDF by default)",
    ),
    company_type: CompanyType = Form(
        default=CompanyType.AI_APPLICATION,
        alias="companyType",
        description="Selects the analysis prompt variant",
    ),
    pipeline: UploadPipeline = Depends(get_pipeline),
    store: AnalysisStore = Depends(get_store),
    llm: LLMProvider = Depends(get_llm),
) -> UploadResponse:
    data = await file.read() if file is not None else None
    mime_type = file.content_type if file is not None else None
    filename = file.filename if file is not None else None

    # Raises before any record exists; handlers in main.py render {error}
    outcome = await pipeline.accept(data, mime_type, company_type, filename)

    background_tasks.add_task(run_analysis_job, outcome.job, store, llm)

    return UploadResponse(
        analysis_id=outcome.record.id,
        company_type=company_type,
        metadata=outcome.metadata,
    )


# ---------------------------------------------------------------------------
# GET /reports - Durable storage listing
# ---------------------------------------------------------------------------


def _require_persistence() -> None:
    if not settings.persistence_enabled:
        raise HTTPException(
            status_code=503,
            detail="Durable storage is not enabled (set PERSISTENCE_ENABLED=true)",
        )


@router.get(
    "",
    response_model=CompaniesResponse,
    responses={503: {"model": ErrorResponse}},
    summary="List companies with their reports and latest analysis",
    dependencies=[Depends(_require_persistence)],
)
async def list_reports(
    session: AsyncSession = Depends(get_async_session),
) -> CompaniesResponse:
    companies = await list_companies_with_reports(session)
    return CompaniesResponse.model_validate({"companies": companies})


# ---------------------------------------------------------------------------
# GET /reports/{analysis_id} - One record
# ---------------------------------------------------------------------------


@router.get(
    "/{analysis_id}",
    response_model=AnalysisRecord,
    responses={404: {"model": ErrorResponse}},
    summary="Get one analysis record",
)
async def get_report_analysis(
    analysis_id: str,
    store: AnalysisStore = Depends(get_store),
) -> AnalysisRecord:
    record = store.get(analysis_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Analysis {analysis_id} not found")
    return record
