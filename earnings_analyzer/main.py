# =============================================================================
# FastAPI Application - Assembly, Lifespan, Error Rendering
# =============================================================================
#
# Run with:
#   uvicorn earnings_analyzer.main:app --reload
#
# LIFESPAN:
#   startup  → configure logging, create the AnalysisStore on app.state,
#              create tables when durable storage is enabled
#   shutdown → dispose the database engine
#
# ERRORS:
# Every error response body is {"error": "<message>"}. AnalyzerError
# subclasses carry their own status code; HTTPException and request
# validation errors are re-rendered into the same shape.
# =============================================================================

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from earnings_analyzer.api import dashboard, reports
from earnings_analyzer.config import settings
from earnings_analyzer.exceptions import AnalyzerError
from earnings_analyzer.models.responses import HealthResponse
from earnings_analyzer.services.store import AnalysisStore

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    configure_logging()
    if getattr(app.state, "store", None) is None:
        app.state.store = AnalysisStore()

    if settings.persistence_enabled:
        from earnings_analyzer.db.engine import init_models

        await init_models()
        logger.info("Durable storage enabled: %s", settings.database_url)

    logger.info("%s %s started", settings.app_name, settings.app_version)
    yield

    if settings.persistence_enabled:
        from earnings_analyzer.db.engine import dispose_engine

        await dispose_engine()


# ---------------------------------------------------------------------------
# Exception Handlers
# ---------------------------------------------------------------------------


async def analyzer_error_handler(request: Request, exc: AnalyzerError) -> JSONResponse:
    logger.warning(
        "%s %s failed: %s: %s",
        request.method, request.url.path, type(exc).__name__, exc,
    )
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})


async def http_error_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    messages = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        messages.append(f"{location}: {err.get('msg')}" if location else err.get("msg"))
    return JSONResponse(status_code=400, content={"error": "; ".join(messages)})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": str(exc) or "Failed to process request"},
    )


# ---------------------------------------------------------------------------
# Application Factory
# ---------------------------------------------------------------------------


def create_app(store: AnalysisStore | None = None) -> FastAPI:
    """
    Build the application. Passing `store` pins the registry instance
    (tests); otherwise the lifespan creates one.
    """
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.store = store

    app.add_exception_handler(AnalyzerError, analyzer_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(reports.router)
    app.include_router(dashboard.router)

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health() -> HealthResponse:
        return HealthResponse(version=settings.app_version, service=settings.app_name)

    return app


app = create_app()
