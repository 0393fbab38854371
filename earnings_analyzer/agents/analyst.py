# =============================================================================
# Analyst Agent - Structured Earnings Analysis
# =============================================================================
#
# Takes the full report text and its metadata and produces an
# AnalysisResult using the company-type-specific system prompt.
#
# This is the dominant-cost step of the upload pipeline and always runs
# after the upload response has been sent (see workers/tasks.py). It is
# bounded by `analysis_timeout_seconds`; on expiry it raises
# ProviderTimeoutError("timeout"). Every other failure, including output
# that does not validate, is raised as ProviderError.
# =============================================================================

from __future__ import annotations

import asyncio
import json
import logging

from pydantic import ValidationError

from earnings_analyzer.agents.prompts import get_analysis_prompt
from earnings_analyzer.config import settings
from earnings_analyzer.exceptions import ProviderError, ProviderTimeoutError
from earnings_analyzer.models.analysis import (
    AnalysisResult,
    CompanyType,
    ReportMetadata,
)
from earnings_analyzer.services.llm import LLMProvider, parse_json_content

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def analyse_report(
    report_text: str,
    metadata: ReportMetadata,
    company_type: CompanyType,
    llm: LLMProvider,
    timeout: float | None = None,
) -> AnalysisResult:
    """
    Run the full structured analysis of one report.

    Args:
        report_text: Extracted report text.
        metadata: Output of the metadata extractor (period, consensus).
        company_type: Selects the prompt variant.
        llm: LLM provider to use for generation.
        timeout: Wall-clock budget in seconds (default from config).

    Raises:
        ProviderTimeoutError: The budget elapsed before the LLM answered.
        ProviderError: The call failed or the output was unusable.
    """
    budget = settings.analysis_timeout_seconds if timeout is None else timeout
    system_prompt = get_analysis_prompt(company_type)
    user_message = _format_user_message(report_text, metadata, company_type)

    logger.info(
        "Analyst starting: %s (%s) %s, company_type=%s, chars=%d",
        metadata.company_name, metadata.company_symbol, metadata.period,
        company_type.value, len(report_text),
    )

    try:
        response = await asyncio.wait_for(
            llm.complete(
                messages=[{"role": "user", "content": user_message}],
                system=system_prompt,
                temperature=settings.analysis_temperature,
                max_tokens=settings.analysis_max_tokens,
                json_output=True,
            ),
            timeout=budget,
        )
    except TimeoutError as exc:
        logger.warning(
            "Analyst timed out after %.0fs for %s",
            budget, metadata.company_symbol,
        )
        raise ProviderTimeoutError() from exc
    except Exception as exc:
        raise ProviderError(str(exc) or type(exc).__name__) from exc

    try:
        result = AnalysisResult.model_validate(
            parse_json_content(response.content),
        )
    except (ValueError, ValidationError) as exc:
        raise ProviderError(f"Analysis response could not be parsed: {exc}") from exc

    logger.info(
        "Analyst complete: %s, model=%s, tokens=%d+%d",
        metadata.company_symbol, response.model,
        response.input_tokens, response.output_tokens,
    )
    return result


# ---------------------------------------------------------------------------
# Internal Helpers
# ---------------------------------------------------------------------------


def _format_user_message(
    report_text: str,
    metadata: ReportMetadata,
    company_type: CompanyType,
) -> str:
    """
    Header lines with company, period and consensus, followed by the report.

    Example:
        Company type: AI应用公司
        Company: Meta Platforms (META)
        Reporting period: Q4 2024
        Consensus baseline: {"revenue": 46980000000.0}

        Report:
        ...
    """
    consensus = json.dumps(metadata.consensus(), indent=2)
    return (
        f"Company type: {company_type.label}\n"
        f"Company: {metadata.company_name} ({metadata.company_symbol})\n"
        f"Reporting period: {metadata.period}\n"
        f"Consensus baseline: {consensus}\n\n"
        f"Report:\n{report_text}\n\n"
        "Return the complete analysis as JSON in exactly the required "
        "structure, every field filled. results_table must contain 5-7 key "
        "financial metrics compared against consensus."
    )
