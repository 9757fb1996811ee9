"""
Dependency functions for the marketplace API.

The database façade and activity logger live on ``app.state`` and are
created by the application lifespan.
"""

from fastapi import HTTPException, Request, status

from .activity import ActivityLogger
from .config import settings
from .storage import Database


def get_database(request: Request) -> Database:
    """
    FastAPI dependency returning the application's database façade.

    Raises:
        HTTPException: 503 if the application has not finished starting
    """
    database = getattr(request.app.state, "database", None)
    if database is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database not initialized",
        )
    return database


def get_activity_logger(request: Request) -> ActivityLogger:
    """FastAPI dependency returning an activity logger bound to the database."""
    return ActivityLogger(get_database(request))


def require_debug_enabled() -> None:
    """Hide debug endpoints in production."""
    if settings.is_production:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Debug routes not available in production",
        )


__all__ = ["get_activity_logger", "get_database", "require_debug_enabled"]
