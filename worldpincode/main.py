"""WorldPincode FastAPI application entry point.

Creates the FastAPI app, configures middleware, includes routers, and
manages the lifecycle of the Gemini lookup service and the session store.
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from config.settings import settings
from worldpincode.api.router import api_router
from worldpincode.data.catalog import APP_DESCRIPTION, APP_TITLE
from worldpincode.middleware.rate_limit import RateLimitMiddleware
from worldpincode.pipeline.session import SessionStore
from worldpincode.services.llm import GeminiLookupService

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

VERSION = "0.1.0"


# ---------------------------------------------------------------------------
# Structured logging configuration
# ---------------------------------------------------------------------------


def _configure_logging() -> None:
    """Set up structlog with JSON or console rendering based on settings."""
    processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.log_format == "json":
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(settings.log_level.lower()),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# Application lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the lookup service and session store on startup; close every
    open session (cancelling pending autocomplete) on shutdown."""
    _configure_logging()
    logger.info(
        "app.startup",
        env=settings.env,
        gcp_project=settings.gcp_project_id,
        region=settings.vertex_ai_location,
    )

    app.state.start_time = time.time()

    lookup = GeminiLookupService(
        project_id=settings.gcp_project_id,
        region=settings.vertex_ai_location,
        model_name=settings.vertex_ai_model,
        lite_model_name=settings.vertex_ai_lite_model,
        quick_suggestion_limit=settings.quick_suggestion_limit,
    )
    if not lookup.configured:
        # Sessions still work; every lookup reports a configuration error.
        logger.warning("app.lookup_not_configured")

    sessions = SessionStore(
        lookup,
        debounce_seconds=settings.autocomplete_debounce_ms / 1000,
        autocomplete_min_chars=settings.autocomplete_min_chars,
        max_sessions=settings.max_sessions,
        idle_seconds=settings.session_idle_seconds,
    )
    app.state.sessions = sessions
    logger.info("app.sessions_initialised", max_sessions=settings.max_sessions)

    yield

    logger.info("app.shutdown_start")
    sessions.close_all()
    logger.info("app.shutdown_complete")


# ---------------------------------------------------------------------------
# FastAPI application
# ---------------------------------------------------------------------------

app = FastAPI(
    title=f"{APP_TITLE} API",
    description=APP_DESCRIPTION,
    version=VERSION,
    lifespan=lifespan,
    default_response_class=ORJSONResponse,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

# -- CORS middleware --------------------------------------------------------
# allow_credentials=True must not be combined with allow_origins=["*"].
if settings.is_production:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )
else:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://localhost:5173", "http://127.0.0.1:8000"],
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "HEAD"],
        allow_headers=["Content-Type", "Accept", "Authorization"],
    )

# -- Custom middleware ------------------------------------------------------
app.add_middleware(
    RateLimitMiddleware,
    max_requests_per_minute=settings.rate_limit_per_minute,
    trusted_proxy_count=settings.trusted_proxy_count,
)

# -- Prometheus metrics -----------------------------------------------------
Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=True,
    excluded_handlers=["/metrics", "/api/v1/health", "/api/v1/health/ready"],
).instrument(app).expose(
    app,
    endpoint="/metrics",
    include_in_schema=not settings.is_production,
)

# -- Include routers -------------------------------------------------------
app.include_router(api_router)


@app.get("/api", response_class=ORJSONResponse)
async def api_info() -> dict:
    """API information endpoint."""
    return {
        "name": f"{APP_TITLE} API",
        "description": APP_DESCRIPTION,
        "version": VERSION,
        "docs": "/docs",
        "health": "/api/v1/health",
        "endpoints": {
            "sessions": "/api/v1/sessions",
            "catalog": "/api/v1/catalog",
            "health": "/api/v1/health",
            "metrics": "/metrics",
        },
    }


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    uvicorn.run(
        "worldpincode.main:app",
        host=settings.api_host,
        port=settings.api_port,
        workers=settings.api_workers,
        log_level=settings.log_level.lower(),
    )
