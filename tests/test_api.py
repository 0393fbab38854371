# =============================================================================
# API Tests - Upload, Dashboard and Record Lookup over HTTP
# =============================================================================
#
# Uses FastAPI's TestClient against an app with a pinned AnalysisStore.
# The LLM and the text extractor are swapped in through
# dependency_overrides, so no API key or Docling model is needed.
#
# TestClient runs background tasks before handing back the response, so
# after a successful POST the record is already terminal. The processing
# window itself is covered in test_pipeline.py.
# =============================================================================

from __future__ import annotations

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from earnings_analyzer.api.deps import get_llm, get_pipeline
from earnings_analyzer.main import create_app
from earnings_analyzer.services.pipeline import UploadPipeline
from earnings_analyzer.services.store import AnalysisStore
from tests.fakes import REPORT_TEXT, FakeLLM

PDF_FILE = ("meta-q4-2024.pdf", b"%PDF-1.7 fake", "application/pdf")


def _client(store: AnalysisStore, llm: FakeLLM, text: str = REPORT_TEXT) -> TestClient:
    app = create_app(store=store)
    app.dependency_overrides[get_llm] = lambda: llm
    app.dependency_overrides[get_pipeline] = lambda: UploadPipeline(
        store=store,
        llm=llm,
        text_extractor=lambda data, mime_type, filename: text,
    )
    return TestClient(app)


def _upload(client: TestClient, company_type: str = "ai_application", file=PDF_FILE):
    return client.post(
        "/reports/upload",
        files={"file": file} if file else None,
        data={"companyType": company_type},
    )


# ---------------------------------------------------------------------------
# Test: Health
# ---------------------------------------------------------------------------


class TestHealth:

    def test_health(self, store, fake_llm):
        response = _client(store, fake_llm).get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


# ---------------------------------------------------------------------------
# Test: POST /reports/upload
# ---------------------------------------------------------------------------


class TestUpload:
    """Tests for the upload endpoint."""

    def test_accepted_and_analysed(self, store, fake_llm):
        response = _upload(_client(store, fake_llm), company_type="ai_supply_chain")

        assert response.status_code == 202
        body = response.json()
        assert body["success"] is True
        assert body["status"] == "processing"
        assert body["company_type"] == "ai_supply_chain"
        assert body["metadata"]["company_symbol"] == "META"

        record = store.get(body["analysis_id"])
        assert record is not None
        assert record.status == "processed"
        assert record.company_type.value == "ai_supply_chain"
        assert fake_llm.calls == ["metadata", "analysis"]

    def test_default_company_type(self, store, fake_llm):
        client = _client(store, fake_llm)
        response = client.post("/reports/upload", files={"file": PDF_FILE})
        assert response.status_code == 202
        assert response.json()["company_type"] == "ai_application"

    def test_missing_file(self, store, fake_llm):
        response = _upload(_client(store, fake_llm), file=None)
        assert response.status_code == 400
        assert response.json() == {"error": "No file uploaded"}
        assert store.size == 0

    def test_non_pdf_rejected(self, store, fake_llm):
        response = _upload(
            _client(store, fake_llm), file=("notes.txt", b"hello", "text/plain"),
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Only PDF files are supported"}
        assert store.size == 0

    def test_unknown_company_type(self, store, fake_llm):
        response = _upload(_client(store, fake_llm), company_type="bank")
        assert response.status_code == 400
        assert "error" in response.json()
        assert store.size == 0

    def test_short_document_leaves_no_record(self, store, fake_llm):
        client = _client(store, fake_llm, text="Too short.")
        response = _upload(client)

        assert response.status_code == 400
        assert response.json()["error"] == "Could not extract text from document"
        dashboard = client.get("/dashboard").json()
        assert dashboard["totalCount"] == 0
        assert dashboard["processingCount"] == 0

    def test_metadata_failure_is_502(self, store):
        llm = FakeLLM(metadata_error=RuntimeError("provider down"))
        response = _upload(_client(store, llm))
        assert response.status_code == 502
        assert "provider down" in response.json()["error"]
        assert store.size == 0

    def test_analysis_failure_recorded_not_returned(self, store):
        llm = FakeLLM(analysis_error=RuntimeError("rate limited"))
        client = _client(store, llm)
        response = _upload(client)

        assert response.status_code == 202
        record = client.get(f"/reports/{response.json()['analysis_id']}").json()
        assert record["processing"] is False
        assert record["processed"] is False
        assert record["error"] == "rate limited"
        assert record["one_line_conclusion"] is None

    def test_llm_not_configured_is_503(self, store):
        app = create_app(store=store)
        with patch(
            "earnings_analyzer.api.deps.get_llm_provider",
            side_effect=ValueError("No API key configured"),
        ):
            response = TestClient(app).post("/reports/upload", files={"file": PDF_FILE})
        assert response.status_code == 503
        assert response.json() == {"error": "No API key configured"}
        assert store.size == 0

    def test_repeated_uploads_get_distinct_ids(self, store, fake_llm):
        client = _client(store, fake_llm)
        ids = [_upload(client).json()["analysis_id"] for _ in range(10)]
        assert len(set(ids)) == 10
        assert store.size == 10
        assert store.get_processing_count() == 0


# ---------------------------------------------------------------------------
# Test: GET /dashboard
# ---------------------------------------------------------------------------


class TestDashboard:
    """Tests for the dashboard read projection."""

    def test_empty(self, store, fake_llm):
        body = _client(store, fake_llm).get("/dashboard").json()
        assert body["analyses"] == []
        assert body["recentAnalyses"] == []
        assert body["processingCount"] == 0
        assert body["totalCount"] == 0
        assert body["stats"] == {
            "companiesAnalyzed": 0,
            "recentCount": 0,
            "processedCount": 0,
            "failedCount": 0,
        }

    def test_most_recent_first_with_limit(self, store, fake_llm, record_fields):
        ids = [store.add({**record_fields, "company_symbol": f"S{i}"}).id for i in range(5)]
        body = _client(store, fake_llm).get("/dashboard", params={"limit": 2}).json()

        assert [a["id"] for a in body["analyses"]] == [ids[4], ids[3]]
        assert body["recentAnalyses"] == body["analyses"]
        assert body["totalCount"] == 5
        assert body["processingCount"] == 5
        assert body["stats"]["companiesAnalyzed"] == 5

    def test_reflects_terminal_states(self, store, record_fields):
        client = _client(store, FakeLLM())
        _upload(client)
        failing = _client(store, FakeLLM(analysis_error=RuntimeError("boom")))
        _upload(failing)
        store.add(record_fields)

        body = client.get("/dashboard").json()
        assert body["totalCount"] == 3
        assert body["processingCount"] == 1
        assert body["stats"]["processedCount"] == 1
        assert body["stats"]["failedCount"] == 1
        assert body["analyses"][0]["processing"] is True
        assert body["analyses"][1]["error"] == "boom"
        assert body["analyses"][2]["processed"] is True

    @pytest.mark.parametrize("limit", [0, 501, "abc"])
    def test_invalid_limit(self, store, fake_llm, limit):
        response = _client(store, fake_llm).get("/dashboard", params={"limit": limit})
        assert response.status_code == 400
        assert "error" in response.json()


# ---------------------------------------------------------------------------
# Test: GET /reports/{analysis_id} and GET /reports
# ---------------------------------------------------------------------------


class TestReports:
    """Tests for record lookup and the durable-storage listing."""

    def test_get_record(self, store, fake_llm, record_fields):
        record = store.add(record_fields)
        body = _client(store, fake_llm).get(f"/reports/{record.id}").json()
        assert body["id"] == record.id
        assert body["processing"] is True
        assert body["company_type"] == "ai_application"

    def test_unknown_record_is_404(self, store, fake_llm):
        response = _client(store, fake_llm).get("/reports/does-not-exist")
        assert response.status_code == 404
        assert "does-not-exist" in response.json()["error"]

    def test_listing_requires_persistence(self, store, fake_llm):
        response = _client(store, fake_llm).get("/reports")
        assert response.status_code == 503
        assert "Durable storage" in response.json()["error"]
