# =============================================================================
# API Dependencies - Shared State and Collaborators
# =============================================================================
#
# The analysis store lives on `app.state.store` (created in the lifespan in
# main.py) and is handed to handlers through `get_store`, so tests can run
# against a fresh store via dependency_overrides.
#
#   get_store()    - the process-wide AnalysisStore
#   get_llm()      - configured LLM provider (503 when no key is set)
#   get_pipeline() - UploadPipeline bound to the two above
# =============================================================================

from __future__ import annotations

import logging

from fastapi import Depends, HTTPException, Request

from earnings_analyzer.services.llm import LLMProvider, get_llm_provider
from earnings_analyzer.services.pipeline import UploadPipeline
from earnings_analyzer.services.store import AnalysisStore

logger = logging.getLogger(__name__)


def get_store(request: Request) -> AnalysisStore:
    return request.app.state.store


def get_llm() -> LLMProvider:
    """
    Resolve the configured LLM provider.

    Raises:
        HTTPException 503: No API key is configured for the provider.
    """
    try:
        return get_llm_provider()
    except ValueError as exc:
        logger.error("LLM provider unavailable: %s", exc)
        raise HTTPException(status_code=503, detail=str(exc)) from exc


def get_pipeline(
    store: AnalysisStore = Depends(get_store),
    llm: LLMProvider = Depends(get_llm),
) -> UploadPipeline:
    return UploadPipeline(store=store, llm=llm)
