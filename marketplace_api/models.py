"""
Pydantic models for request/response schemas.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .activity import ActivityType

# Request Models


class ActivityCreate(BaseModel):
    """Model for recording an activity event (camelCase aliases accepted)."""

    type: str = ActivityType.PAGE_VIEW.value
    action: Optional[str] = None
    page: Optional[str] = None
    referrer: Optional[str] = None
    username: Optional[str] = None
    token_id: Optional[str] = Field(default=None, alias="tokenId")
    item_id: Optional[str] = Field(default=None, alias="itemId")
    nft_name: Optional[str] = Field(default=None, alias="nftName")
    price: Optional[str] = None
    seller: Optional[str] = None
    buyer: Optional[str] = None
    wallet_address: Optional[str] = Field(default=None, alias="walletAddress")
    transaction_hash: Optional[str] = Field(default=None, alias="transactionHash")
    status: Optional[str] = None

    model_config = {"populate_by_name": True}


# Response Models


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str
    success: bool = True


class ErrorResponse(BaseModel):
    """Error response model."""

    success: bool = False
    error: str
    code: str


class PaginationMeta(BaseModel):
    """Pagination block of list responses."""

    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "PaginationMeta":
        total_pages = -(-total // limit) if limit > 0 else 0
        return cls(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_prev=page > 1,
        )


class ActivityListResponse(BaseModel):
    """Paginated activity log entries."""

    success: bool = True
    data: List[Dict[str, Any]]
    pagination: PaginationMeta


class DatabaseStatusResponse(BaseModel):
    """Storage status for the debug endpoint."""

    connected: bool
    mode: str
    using_fallback: bool
    stats: Dict[str, int]


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    service: str = "marketplace-api"
    database: str
    storage_mode: str
