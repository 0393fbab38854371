# =============================================================================
# Dashboard API - Read Projection over the Analysis Store
# =============================================================================
#
# GET /dashboard?limit=N
#
# Pure read path: one store snapshot, sliced to the N most recent records,
# plus summary counts recomputed from the full snapshot on every call.
# Clients poll this endpoint to watch records move from processing to
# processed / error.
# =============================================================================

import logging

from fastapi import APIRouter, Depends, Query

from earnings_analyzer.api.deps import get_store
from earnings_analyzer.config import settings
from earnings_analyzer.models.responses import DashboardResponse, DashboardStatsResponse
from earnings_analyzer.services.stats import compute_stats
from earnings_analyzer.services.store import AnalysisStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Dashboard"])


@router.get(
    "/dashboard",
    response_model=DashboardResponse,
    summary="Recent analyses and processing counts",
)
async def get_dashboard(
    limit: int | None = Query(
        default=None,
        ge=1,
        le=500,
        description="Number of most recent analyses to return (default 50)",
    ),
    store: AnalysisStore = Depends(get_store),
) -> DashboardResponse:
    records = store.get_all()
    if limit is None:
        limit = settings.dashboard_default_limit
    analyses = records[:limit]
    stats = compute_stats(records, window_days=settings.recent_window_days)

    return DashboardResponse(
        analyses=analyses,
        recent_analyses=analyses,
        processing_count=stats.processing_count,
        total_count=len(records),
        stats=DashboardStatsResponse(
            companies_analyzed=stats.companies_analyzed,
            recent_count=stats.recent_count,
            processed_count=stats.processed_count,
            failed_count=stats.failed_count,
        ),
    )
