"""
Health check endpoints.

Liveness probe plus catalog cache diagnostics. Neither touches upstream.
"""

from datetime import UTC, datetime
from typing import Annotated, Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from pokedex.api.deps import get_catalog_service
from pokedex.services.catalog import CatalogService

router = APIRouter(prefix="/health", tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    timestamp: str


@router.get("", response_model=HealthResponse)
async def health() -> HealthResponse:
    """
    Liveness probe.

    Returns ok if the service is running.
    Does not check dependencies.
    """
    return HealthResponse(status="ok", timestamp=datetime.now(UTC).isoformat())


@router.get("/cache")
async def cache_status(
    catalog: Annotated[CatalogService, Depends(get_catalog_service)],
) -> dict[str, Any]:
    """Snapshot age and size. Does not trigger a refresh."""
    return catalog.cache_status()
