"""
Development-only storage inspection endpoints.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from ..dependencies import get_database, require_debug_enabled
from ..models import DatabaseStatusResponse, MessageResponse
from ..storage import Database, Table

USER_FIELDS = ("id", "username", "email", "created_at")

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/debug",
    tags=["Debug"],
    dependencies=[Depends(require_debug_enabled)],
)


@router.get("/database", response_model=DatabaseStatusResponse)
async def database_status(database: Database = Depends(get_database)):
    """Storage mode, reachability and in-memory record counts."""
    return DatabaseStatusResponse(
        connected=await database.is_connected(),
        mode=database.mode.value,
        using_fallback=database.using_fallback,
        stats=database.stats(),
    )


@router.post("/clear-database", response_model=MessageResponse)
async def clear_database(database: Database = Depends(get_database)):
    """
    Empty the in-memory store.

    Raises:
        HTTPException: 400 when running against Supabase
    """
    if not database.clear_fallback():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Not using in-memory storage",
        )

    logger.warning("In-memory storage cleared via debug endpoint")
    return MessageResponse(message="In-memory storage cleared successfully")


@router.get("/users")
async def list_users(database: Database = Depends(get_database)) -> dict:
    """List stored users with identifying fields only."""
    result = await database.find(Table.USERS)
    users = [{field: user.get(field) for field in USER_FIELDS} for user in result.data]
    return {"success": True, "data": users, "count": result.total}
