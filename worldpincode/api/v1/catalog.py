"""Static catalog endpoint: example queries and location shortcuts
shown by the search page before the user types anything."""

from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel

from worldpincode.data.catalog import COMMON_COUNTRIES, MAJOR_CITIES, SUGGESTED_QUERIES

router = APIRouter(prefix="/catalog", tags=["catalog"])


class CatalogResponse(BaseModel):
    suggested_queries: list[str]
    countries: list[str]
    cities: list[str]


@router.get("", response_model=CatalogResponse)
async def get_catalog() -> CatalogResponse:
    return CatalogResponse(
        suggested_queries=list(SUGGESTED_QUERIES),
        countries=list(COMMON_COUNTRIES),
        cities=list(MAJOR_CITIES),
    )
