# =============================================================================
# API Response Models - Pydantic V2 Schemas
# =============================================================================
#
# These models define the shape of data coming OUT of the API.
# The dashboard keys use the camelCase names the dashboard client reads
# (`processingCount`, `totalCount`, ...) via serialization aliases.
# =============================================================================

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from earnings_analyzer.models.analysis import AnalysisRecord, CompanyType, ReportMetadata


class HealthResponse(BaseModel):
    """Response for GET /health - confirms the API is running."""

    status: str = "ok"
    version: str
    service: str


class ErrorResponse(BaseModel):
    """Body of every error response."""

    error: str


class UploadResponse(BaseModel):
    """
    Response for POST /reports/upload - the record exists and its analysis
    is running in the background.

    Clients poll GET /dashboard or GET /reports/{analysis_id} until the
    record leaves the processing state.
    """

    success: bool = True
    analysis_id: str = Field(description="ID of the created analysis record")
    company_type: CompanyType
    metadata: ReportMetadata
    status: str = Field(
        default="processing",
        description="Always 'processing': the analysis has not finished yet",
    )
    message: str = Field(
        default="Analysis started. Refresh shortly to see the results.",
    )


class DashboardStatsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    companies_analyzed: int = Field(serialization_alias="companiesAnalyzed")
    recent_count: int = Field(serialization_alias="recentCount")
    processed_count: int = Field(serialization_alias="processedCount")
    failed_count: int = Field(serialization_alias="failedCount")


class DashboardResponse(BaseModel):
    """Response for GET /dashboard."""

    model_config = ConfigDict(populate_by_name=True)

    analyses: list[AnalysisRecord]
    recent_analyses: list[AnalysisRecord] = Field(serialization_alias="recentAnalyses")
    processing_count: int = Field(serialization_alias="processingCount")
    total_count: int = Field(serialization_alias="totalCount")
    stats: DashboardStatsResponse


class ReportWithAnalysis(BaseModel):
    id: int
    company_id: int
    report_type: str
    fiscal_year: int
    fiscal_quarter: int | None = None
    filing_date: date | None = None
    document_size: int | None = None
    processed: bool
    created_at: datetime
    analysis: dict[str, Any] | None = None


class CompanyWithReports(BaseModel):
    id: int
    symbol: str
    name: str
    sector: str | None = None
    market_cap: float | None = None
    created_at: datetime
    reports: list[ReportWithAnalysis]


class CompaniesResponse(BaseModel):
    """Response for GET /reports (durable storage only)."""

    companies: list[CompanyWithReports]
