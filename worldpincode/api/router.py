"""Main API router combining all v1 route modules.

Aggregates the session, catalog and health routers under ``/api/v1`` so
the FastAPI application only needs to include a single router.
"""

from __future__ import annotations

from fastapi import APIRouter

from worldpincode.api.v1 import catalog, health, sessions

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(sessions.router)
api_router.include_router(catalog.router)
api_router.include_router(health.router)
