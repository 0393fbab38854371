# =============================================================================
# Document Parser - Text Extraction from Uploaded Reports
# =============================================================================
#
# Converts raw uploaded bytes into plain text for the LLM steps.
#
#   application/pdf            → Docling (layout-aware, tables as markdown)
#   Excel (xlsx / xls)         → pandas, one "=== sheet ===" block per sheet
#   text/*                     → UTF-8 decode
#   anything else              → UnsupportedFormatError
#
# Library failures are wrapped in ParseError so callers only deal with the
# ExtractionError family. Everything here is synchronous and CPU-bound;
# the upload pipeline calls it through asyncio.to_thread.
#
# Docling imports are deferred to first use: loading its models takes a few
# seconds and is not needed for text or spreadsheet uploads.
# =============================================================================

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from typing import Any

import pandas as pd

from earnings_analyzer.exceptions import ParseError, UnsupportedFormatError

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"
EXCEL_MIME_TYPES = frozenset({
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-excel",
})


# ---------------------------------------------------------------------------
# Data Structures
# ---------------------------------------------------------------------------


@dataclass
class ParsedElement:
    """One paragraph, heading, or table from the document, in reading order."""

    text: str
    page_number: int
    element_type: str  # "text", "table", or "heading"


@dataclass
class ParsedDocument:
    """All extracted elements plus the page count."""

    elements: list[ParsedElement] = field(default_factory=list)
    page_count: int = 0
    filename: str = ""

    @property
    def text(self) -> str:
        return "\n\n".join(e.text for e in self.elements)


# ---------------------------------------------------------------------------
# Docling Converter - Lazy Singleton
# ---------------------------------------------------------------------------

_converter: Any = None


def _get_converter():
    """Lazily initialize and cache the Docling DocumentConverter."""
    global _converter
    if _converter is None:
        from docling.datamodel.base_models import InputFormat
        from docling.datamodel.pipeline_options import PdfPipelineOptions
        from docling.document_converter import DocumentConverter, PdfFormatOption

        logger.info(
            "Initializing Docling DocumentConverter "
            "(first use, may take a few seconds)..."
        )

        # Earnings reports are table-heavy; scanned pages need OCR.
        pipeline_options = PdfPipelineOptions()
        pipeline_options.do_table_structure = True
        pipeline_options.do_ocr = True

        _converter = DocumentConverter(
            format_options={
                InputFormat.PDF: PdfFormatOption(
                    pipeline_options=pipeline_options,
                ),
            }
        )
        logger.info("Docling DocumentConverter initialized")
    return _converter


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def extract_text(data: bytes, mime_type: str, filename: str = "upload") -> str:
    """
    Extract plain text from an uploaded document.

    Raises:
        UnsupportedFormatError: No extractor for `mime_type`.
        ParseError: The document could not be read.
    """
    if mime_type == PDF_MIME_TYPE:
        return parse_pdf(data, filename=filename).text
    if mime_type in EXCEL_MIME_TYPES:
        return extract_text_from_excel(data)
    if mime_type.startswith("text/"):
        return data.decode("utf-8", errors="replace")
    raise UnsupportedFormatError(f"Unsupported file type: {mime_type}")


def parse_pdf(data: bytes, filename: str = "upload.pdf") -> ParsedDocument:
    """
    Parse PDF bytes with Docling, keeping headings, text blocks and tables
    in reading order.
    """
    from docling.datamodel.base_models import DocumentStream
    from docling_core.types.doc.labels import DocItemLabel

    name = filename if filename.lower().endswith(".pdf") else f"{filename}.pdf"
    converter = _get_converter()

    try:
        result = converter.convert(
            DocumentStream(name=name, stream=io.BytesIO(data)),
        )
    except Exception as exc:
        logger.error("PDF parsing error for '%s': %s", name, exc)
        raise ParseError("Failed to parse PDF document") from exc

    elements: list[ParsedElement] = []
    page_numbers_seen: set[int] = set()

    for item, _level in result.document.iterate_items():
        page_no = 0
        if getattr(item, "prov", None):
            page_no = item.prov[0].page_no
        page_numbers_seen.add(page_no)

        label = getattr(item, "label", None)

        if label in (DocItemLabel.SECTION_HEADER, DocItemLabel.TITLE):
            text = getattr(item, "text", "").strip()
            if text:
                elements.append(ParsedElement(text, page_no, "heading"))

        elif label == DocItemLabel.TABLE:
            table_md = _table_to_markdown(item)
            if table_md:
                elements.append(ParsedElement(table_md, page_no, "table"))

        elif label in (DocItemLabel.TEXT, DocItemLabel.LIST_ITEM,
                       DocItemLabel.CAPTION, DocItemLabel.FOOTNOTE):
            text = getattr(item, "text", "").strip()
            if text:
                elements.append(ParsedElement(text, page_no, "text"))

    page_count = max(page_numbers_seen) if page_numbers_seen - {0} else 0

    logger.info(
        "Parsed '%s': %d elements (%d tables), %d pages",
        name,
        len(elements),
        sum(1 for e in elements if e.element_type == "table"),
        page_count,
    )

    return ParsedDocument(elements=elements, page_count=page_count, filename=name)


def extract_text_from_excel(data: bytes) -> str:
    """Render every sheet as a titled block of tab-separated rows."""
    try:
        sheets = pd.read_excel(io.BytesIO(data), sheet_name=None, header=None)
    except Exception as exc:
        logger.error("Excel parsing error: %s", exc)
        raise ParseError("Failed to parse Excel document") from exc

    blocks = []
    for sheet_name, frame in sheets.items():
        body = frame.fillna("").to_csv(sep="\t", index=False, header=False)
        blocks.append(f"\n\n=== {sheet_name} ===\n\n{body}")
    return "".join(blocks)


def _table_to_markdown(table_item: object) -> str:
    """
    Convert a Docling TableItem to markdown via its DataFrame export,
    falling back to the item's text.
    """
    try:
        if hasattr(table_item, "export_to_dataframe"):
            df = table_item.export_to_dataframe()
            return df.to_markdown(index=False)
    except Exception as exc:
        logger.warning("Table export to DataFrame failed: %s", exc)

    text = getattr(table_item, "text", "")
    return text.strip() if text else ""
