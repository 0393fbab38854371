"""Dashboard summary statistics, recomputed from the full record set on every read."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from earnings_analyzer.models.analysis import AnalysisRecord


@dataclass
class DashboardStats:
    companies_analyzed: int
    recent_count: int
    processed_count: int
    failed_count: int
    processing_count: int


def compute_stats(
    records: Sequence[AnalysisRecord],
    window_days: int = 7,
    now: datetime | None = None,
) -> DashboardStats:
    """
    Reduce a record snapshot to the dashboard summary cards.

    `recent_count` counts records created within the last `window_days`.
    """
    cutoff = (now or datetime.now(UTC)) - timedelta(days=window_days)
    return DashboardStats(
        companies_analyzed=len({r.company_symbol for r in records}),
        recent_count=sum(1 for r in records if r.created_at >= cutoff),
        processed_count=sum(1 for r in records if r.processed),
        failed_count=sum(1 for r in records if r.status == "error"),
        processing_count=sum(1 for r in records if r.processing),
    )
