# =============================================================================
# Metadata Extractor - Filing Metadata from Report Text
# =============================================================================
#
# Runs synchronously inside the upload request, before any analysis record
# exists, so its failures become HTTP errors. Only the head of the report is
# sent: cover page and first statements carry the company, ticker, period
# and filing date.
# =============================================================================

from __future__ import annotations

import asyncio
import logging

from pydantic import ValidationError

from earnings_analyzer.agents.prompts import METADATA_SYSTEM_PROMPT
from earnings_analyzer.config import settings
from earnings_analyzer.exceptions import MetadataError
from earnings_analyzer.models.analysis import ReportMetadata
from earnings_analyzer.services.llm import LLMProvider, parse_json_content

logger = logging.getLogger(__name__)


async def extract_metadata(
    report_text: str,
    llm: LLMProvider,
    max_chars: int | None = None,
    timeout: float | None = None,
) -> ReportMetadata:
    """
    Derive company, period, filing date and consensus figures from the
    report text.

    Raises:
        MetadataError: The LLM call failed, timed out, or returned output
            that does not validate as ReportMetadata.
    """
    limit = settings.metadata_max_chars if max_chars is None else max_chars
    budget = settings.metadata_timeout_seconds if timeout is None else timeout
    excerpt = report_text[:limit]

    user_message = (
        "Extract the filing metadata from this financial report excerpt.\n\n"
        f"{excerpt}"
    )

    try:
        response = await asyncio.wait_for(
            llm.complete(
                messages=[{"role": "user", "content": user_message}],
                system=METADATA_SYSTEM_PROMPT,
                temperature=0.0,
                max_tokens=1024,
                json_output=True,
            ),
            timeout=budget,
        )
    except TimeoutError as exc:
        raise MetadataError(
            f"Metadata extraction timed out after {budget:.0f}s"
        ) from exc
    except Exception as exc:
        logger.error("Metadata extraction call failed: %s", exc)
        raise MetadataError(f"Metadata extraction failed: {exc}") from exc

    try:
        metadata = ReportMetadata.model_validate(
            parse_json_content(response.content),
        )
    except (ValueError, ValidationError) as exc:
        logger.warning(
            "Unusable metadata response from %s: %.200s",
            response.model, response.content,
        )
        raise MetadataError(f"Could not read report metadata: {exc}") from exc

    logger.info(
        "Extracted metadata: %s (%s) %s %s, model=%s",
        metadata.company_name, metadata.company_symbol,
        metadata.report_type, metadata.period, response.model,
    )
    return metadata
