# =============================================================================
# Unit Tests - Document Parser
# =============================================================================
#
# Text and spreadsheet extraction run for real (pandas + openpyxl). PDF
# parsing swaps in a stub Docling converter so no models are downloaded.
# =============================================================================

from __future__ import annotations

import io
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pandas as pd
import pytest
from docling_core.types.doc.labels import DocItemLabel

from earnings_analyzer.exceptions import ExtractionError, ParseError, UnsupportedFormatError
from earnings_analyzer.services import parser
from earnings_analyzer.services.parser import ParsedDocument, ParsedElement, extract_text

XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _xlsx_bytes(sheets: dict[str, pd.DataFrame]) -> bytes:
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        for name, frame in sheets.items():
            frame.to_excel(writer, sheet_name=name, index=False)
    return buffer.getvalue()


def _item(label, text="", page_no=1):
    return SimpleNamespace(label=label, text=text, prov=[SimpleNamespace(page_no=page_no)])


def _stub_converter(items):
    result = SimpleNamespace(
        document=SimpleNamespace(iterate_items=lambda: [(item, 0) for item in items]),
    )
    converter = MagicMock()
    converter.convert.return_value = result
    return converter


# ---------------------------------------------------------------------------
# Test: Dispatch by MIME Type
# ---------------------------------------------------------------------------


class TestExtractText:
    """Tests for MIME-type dispatch."""

    def test_plain_text_decoded(self):
        assert extract_text("Umsatz €4.2B".encode(), "text/plain") == "Umsatz €4.2B"

    def test_invalid_utf8_replaced(self):
        text = extract_text(b"revenue \xff up", "text/plain")
        assert text.startswith("revenue ")
        assert text.endswith(" up")

    def test_unsupported_type(self):
        with pytest.raises(UnsupportedFormatError, match="image/png"):
            extract_text(b"\x89PNG", "image/png")

    def test_unsupported_is_extraction_error(self):
        with pytest.raises(ExtractionError):
            extract_text(b"{}", "application/json")


# ---------------------------------------------------------------------------
# Test: Excel
# ---------------------------------------------------------------------------


class TestExcel:
    """Tests for spreadsheet extraction."""

    def test_one_block_per_sheet(self):
        data = _xlsx_bytes({
            "Income": pd.DataFrame({"Metric": ["Revenue", "EPS"], "Q4": [48.39, 8.02]}),
            "Guidance": pd.DataFrame({"Item": ["Capex"], "2025": ["60-65B"]}),
        })
        text = extract_text(data, XLSX)

        assert "=== Income ===" in text
        assert "=== Guidance ===" in text
        assert text.index("=== Income ===") < text.index("=== Guidance ===")
        assert "Revenue\t48.39" in text
        assert "Capex\t60-65B" in text

    def test_blank_cells_rendered_empty(self):
        data = _xlsx_bytes({"Sheet1": pd.DataFrame({"A": ["x", None], "B": [None, "y"]})})
        text = extract_text(data, XLSX)
        assert "x\t" in text
        assert "\ty" in text
        assert "nan" not in text

    def test_corrupt_workbook(self):
        with pytest.raises(ParseError):
            extract_text(b"not a workbook", XLSX)


# ---------------------------------------------------------------------------
# Test: PDF
# ---------------------------------------------------------------------------


class TestPdf:
    """Tests for the Docling element walk with a stub converter."""

    def test_reading_order_and_types(self):
        converter = _stub_converter([
            _item(DocItemLabel.TITLE, "Fourth Quarter 2024 Results", 1),
            _item(DocItemLabel.TEXT, "Revenue was $48.39 billion.", 1),
            _item(DocItemLabel.PICTURE, "", 2),
            _item(DocItemLabel.LIST_ITEM, "Capex guide raised", 3),
        ])
        with patch.object(parser, "_get_converter", return_value=converter):
            document = parser.parse_pdf(b"%PDF", filename="meta-q4")

        assert [e.element_type for e in document.elements] == ["heading", "text", "text"]
        assert document.page_count == 3
        assert document.filename == "meta-q4.pdf"
        assert document.text.startswith("Fourth Quarter 2024 Results\n\nRevenue")

    def test_extract_text_uses_parsed_document(self):
        converter = _stub_converter([_item(DocItemLabel.TEXT, "Body text", 1)])
        with patch.object(parser, "_get_converter", return_value=converter):
            assert extract_text(b"%PDF", "application/pdf", "r.pdf") == "Body text"

    def test_converter_failure_raises_parse_error(self):
        converter = MagicMock()
        converter.convert.side_effect = RuntimeError("PDF header not found")
        with patch.object(parser, "_get_converter", return_value=converter):
            with pytest.raises(ParseError, match="Failed to parse PDF"):
                parser.parse_pdf(b"garbage")

    def test_parsed_document_text(self):
        document = ParsedDocument(elements=[
            ParsedElement("A", 1, "heading"),
            ParsedElement("B", 1, "text"),
        ])
        assert document.text == "A\n\nB"
