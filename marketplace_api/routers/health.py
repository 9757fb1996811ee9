"""
Health and service information endpoints.
"""

import logging

from fastapi import APIRouter, Depends

from ..models import HealthResponse
from ..storage import Database
from ..dependencies import get_database

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/")
async def root() -> dict:
    """Root endpoint with service information."""
    return {
        "service": "Marketplace API",
        "version": "1.0.0",
        "status": "active",
    }


@router.get("/health", response_model=HealthResponse)
async def health_check(database: Database = Depends(get_database)) -> HealthResponse:
    """
    Health check endpoint.

    Reports ``degraded`` while running on in-memory fallback storage or
    when the active store is unreachable.
    """
    connected = await database.is_connected()
    healthy = connected and not database.using_fallback

    if not connected:
        logger.error("Database health check failed")

    return HealthResponse(
        status="healthy" if healthy else "degraded",
        database="connected" if connected else "disconnected",
        storage_mode=database.mode.value,
    )
