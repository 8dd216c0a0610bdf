"""Health check endpoints for WorldPincode API v1.

Liveness and readiness probes for Cloud Run / Kubernetes deployments.
Readiness does not call Gemini; it only reports whether the lookup
collaborator has the configuration it needs to do so.
"""

from __future__ import annotations

import time

import structlog
from fastapi import APIRouter, Request
from pydantic import BaseModel

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


class ReadinessResponse(BaseModel):
    """Readiness status with one entry per checked component."""

    status: str
    checks: dict[str, str]


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Liveness probe.  Does not look at downstream dependencies."""
    start_time: float = getattr(request.app.state, "start_time", time.time())
    return HealthResponse(
        status="healthy",
        version=request.app.version,
        uptime_seconds=round(time.time() - start_time, 2),
    )


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check(request: Request) -> ReadinessResponse:
    """Readiness probe.

    ``ready`` when the session store exists and the lookup service has a
    GCP project to call; ``degraded`` otherwise.  A degraded instance
    still serves sessions, but every search reports a configuration error.
    """
    checks: dict[str, str] = {}
    all_ok = True

    store = getattr(request.app.state, "sessions", None)
    if store is not None:
        checks["sessions"] = f"ok ({len(store)} active)"
        lookup = store.lookup
        if getattr(lookup, "configured", True):
            checks["lookup"] = "ok"
        else:
            checks["lookup"] = "not_configured"
            all_ok = False
    else:
        checks["sessions"] = "not_initialised"
        checks["lookup"] = "not_initialised"
        all_ok = False

    status = "ready" if all_ok else "degraded"
    logger.info("health.readiness_check", status=status, checks=checks)
    return ReadinessResponse(status=status, checks=checks)
