"""
Activity log endpoints.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from ..activity import ActivityLogger
from ..config import settings
from ..dependencies import get_activity_logger
from ..models import (ActivityCreate, ActivityListResponse, MessageResponse,
                      PaginationMeta)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/activity", tags=["Activity"])


async def _list(
    activity_logger: ActivityLogger,
    page: int,
    limit: int,
    **filters,
) -> ActivityListResponse:
    logs, total = await activity_logger.get_activity_logs(
        limit=limit,
        skip=(page - 1) * limit,
        **filters,
    )
    return ActivityListResponse(
        data=logs,
        pagination=PaginationMeta.build(page=page, limit=limit, total=total),
    )


@router.get("", response_model=ActivityListResponse)
async def list_activity(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    activity_type: Optional[str] = Query(None, alias="type"),
    status_filter: Optional[str] = Query(None, alias="status"),
    since: Optional[datetime] = None,
    until: Optional[datetime] = None,
    activity_logger: ActivityLogger = Depends(get_activity_logger),
):
    """List activity entries, newest first."""
    return await _list(
        activity_logger,
        page,
        limit,
        activity_type=activity_type,
        status=status_filter,
        since=since,
        until=until,
    )


@router.get("/user/{username}", response_model=ActivityListResponse)
async def list_user_activity(
    username: str,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    activity_logger: ActivityLogger = Depends(get_activity_logger),
):
    """List one user's activity entries, newest first."""
    return await _list(activity_logger, page, limit, username=username)


@router.post("", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def record_activity(
    event: ActivityCreate,
    request: Request,
    activity_logger: ActivityLogger = Depends(get_activity_logger),
):
    """
    Record a client-side activity event.

    Client IP and user agent are taken from the request.
    """
    data = event.model_dump(exclude_none=True)
    data["ip_address"] = request.client.host if request.client else None
    data["user_agent"] = request.headers.get("user-agent")

    if not await activity_logger.log_activity(data):
        logger.warning(f"Activity event {event.type} was not recorded")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to record activity",
        )

    return MessageResponse(message="Activity recorded")


@router.get("/{entry_id}")
async def get_activity_entry(
    entry_id: str,
    activity_logger: ActivityLogger = Depends(get_activity_logger),
) -> dict:
    """Fetch a single activity entry by id."""
    return {"success": True, "data": await activity_logger.get_activity(entry_id)}
