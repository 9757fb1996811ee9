"""
Activity logging for marketplace events.

Writes user and marketplace events to the ``activity_logs`` table through
the database façade, so events are kept in whichever store is active.
Incoming payloads may use camelCase keys; they are stored in snake_case.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .logging_config import get_logger
from .metrics import activity_events_total
from .storage import Database, Filter, Pagination, Query, Sort, StoreError, Table

logger = get_logger(__name__)


class ActivityType(str, Enum):
    """Common activity types recorded by the API."""

    PAGE_VIEW = "PAGE_VIEW"
    USER_REGISTER = "USER_REGISTER"
    USER_LOGIN = "USER_LOGIN"
    USER_LOGIN_FAILED = "USER_LOGIN_FAILED"
    USER_UPDATE = "USER_UPDATE"
    NFT_MINT = "NFT_MINT"
    NFT_LIST = "NFT_LIST"
    NFT_PURCHASE = "NFT_PURCHASE"
    WALLET_CONNECT = "WALLET_CONNECT"
    ERROR = "ERROR"


FIELD_MAP = {
    "tokenId": "token_id",
    "nftName": "nft_name",
    "transactionHash": "transaction_hash",
    "ipAddress": "ip_address",
    "userAgent": "user_agent",
    "walletAddress": "wallet_address",
    "itemId": "item_id",
}

ALLOWED_FIELDS = frozenset(
    {
        "type",
        "action",
        "page",
        "referrer",
        "token_id",
        "item_id",
        "nft_name",
        "price",
        "seller",
        "buyer",
        "wallet_address",
        "username",
        "transaction_hash",
        "ip_address",
        "user_agent",
        "status",
        "timestamp",
        "created_at",
    }
)


def to_snake_case_log(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Build a storable log entry from an event payload.

    Unknown keys are dropped. ``timestamp`` and ``created_at`` default to now
    and ``status`` to ``success``; enum values are stored as plain strings.
    """
    now = datetime.now(timezone.utc).isoformat()
    entry: Dict[str, Any] = {
        "timestamp": now,
        "created_at": now,
        "status": data.get("status") or "success",
    }

    for key, value in data.items():
        mapped = FIELD_MAP.get(key, key)
        if mapped not in ALLOWED_FIELDS or value is None:
            continue
        entry[mapped] = value.value if isinstance(value, Enum) else value

    return entry


def _utc_iso(moment: datetime) -> str:
    """ISO-8601 in UTC, the form timestamps are stored in."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat()


def to_camel_case_log(log: Dict[str, Any]) -> Dict[str, Any]:
    """Add camelCase aliases for the snake_case fields of a stored entry."""
    result = dict(log)
    for camel, snake in FIELD_MAP.items():
        result[camel] = log.get(snake)
    return result


class ActivityLogger:
    """
    Records and queries activity log entries.

    Attributes:
        database: Database façade used for storage
    """

    def __init__(self, database: Database) -> None:
        self.database = database

    async def log_activity(self, data: Dict[str, Any]) -> bool:
        """
        Store one activity event.

        Failures are logged and reported through the return value so that
        a logging problem never fails the request that triggered it.

        Returns:
            True if the entry was stored
        """
        entry = to_snake_case_log(data)
        activity_type = str(entry.get("type", "UNKNOWN"))
        try:
            await self.database.create(Table.ACTIVITY_LOGS, entry)
        except StoreError as e:
            logger.error(
                f"Failed to log activity: {e.message}",
                extra={"extra_fields": {"type": activity_type, "code": e.code}},
            )
            activity_events_total.labels(type=activity_type, success="False").inc()
            return False

        activity_events_total.labels(type=activity_type, success="True").inc()
        logger.debug(f"Activity logged: {activity_type}")
        return True

    async def get_activity_logs(
        self,
        activity_type: Optional[str] = None,
        status: Optional[str] = None,
        username: Optional[str] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        limit: int = 100,
        skip: int = 0,
    ) -> Tuple[List[Dict[str, Any]], int]:
        """
        Fetch activity entries, newest first.

        Args:
            activity_type: Only entries of this type
            status: Only entries with this status
            username: Only entries of this user
            since: Earliest timestamp (inclusive); naive values are taken as UTC
            until: Latest timestamp (inclusive)
            limit: Page size
            skip: Number of entries to skip

        Returns:
            Tuple of (camelCase log entries, total matching entries)
        """
        if limit <= 0:
            raise ValueError("limit must be positive")
        if skip < 0:
            raise ValueError("skip must not be negative")

        bounds = []
        if since is not None:
            bounds.append(Filter("gte", _utc_iso(since)))
        if until is not None:
            bounds.append(Filter("lte", _utc_iso(until)))

        filters: Dict[str, Any] = {
            "type": activity_type,
            "status": status,
            "username": username,
            "timestamp": bounds or None,
        }

        result = await self.database.find(
            Table.ACTIVITY_LOGS,
            Query(
                filters=filters,
                sort=Sort("timestamp", ascending=False),
                pagination=Pagination.from_offset(skip, limit),
            ),
        )
        return [to_camel_case_log(log) for log in result.data], result.total

    async def get_activity(self, entry_id: str) -> Dict[str, Any]:
        """
        Fetch one activity entry.

        Raises:
            NotFoundError: If no entry has this id
        """
        record = await self.database.find_by_id(Table.ACTIVITY_LOGS, entry_id)
        return to_camel_case_log(record)
