# =============================================================================
# Shared Fixtures
# =============================================================================
#
# Fresh store per test, a FakeLLM answering both pipeline prompts, and the
# metadata / record fields of a sample Meta Q4 2024 filing.
# =============================================================================

from __future__ import annotations

from typing import Any

import pytest

from earnings_analyzer.models.analysis import ReportMetadata
from earnings_analyzer.services.store import AnalysisStore
from tests.fakes import FakeLLM, make_metadata_payload


@pytest.fixture
def store() -> AnalysisStore:
    return AnalysisStore()


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def metadata() -> ReportMetadata:
    return ReportMetadata.model_validate(make_metadata_payload())


@pytest.fixture
def record_fields() -> dict[str, Any]:
    """Fields the upload pipeline passes to store.add()."""
    return {
        "company_name": "Meta Platforms",
        "company_symbol": "META",
        "company_type": "ai_application",
        "report_type": "10-K",
        "fiscal_year": 2024,
        "fiscal_quarter": 4,
        "filing_date": "2025-01-29",
        "processing": True,
        "processed": False,
    }
