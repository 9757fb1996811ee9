"""
In-memory storage used when the remote database is not available.

Keeps one ordered collection per table and mirrors the remote store's
contract: equality and comparison filters, sorting, page/limit slicing and
uniqueness of user email and username.
"""

import copy
import operator
import secrets
import string
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..logging_config import get_logger
from .errors import AlreadyExistsError, DuplicateKind, NotFoundError
from .query import (APPEND_ONLY_TABLES, FindResult, Filter, Query, Record,
                    Table, table_name)

logger = get_logger(__name__)

_MISSING = object()

_COMPARATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "eq": operator.eq,
    "neq": operator.ne,
    "gt": operator.gt,
    "gte": operator.ge,
    "lt": operator.lt,
    "lte": operator.le,
}

_ID_ALPHABET = string.ascii_lowercase + string.digits

BASELINE_USERS: List[Record] = [
    {
        "username": "demo_user",
        "email": "demo@example.com",
        "password_hash": "$2b$12$demo.hash.for.testing",
        "avatar": None,
        "total_nfts_created": 0,
        "total_nfts_owned": 0,
    }
]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _sort_key(value: Any) -> Tuple[int, Any]:
    """Order numbers before strings before anything else, so mixed types never compare."""
    if isinstance(value, (int, float)):
        return (0, value)
    if isinstance(value, str):
        return (1, value)
    return (2, repr(value))


def _matches(record: Record, filters: List[Tuple[str, Filter]]) -> bool:
    for name, flt in filters:
        value = record.get(name, _MISSING)
        if value is _MISSING or value is None:
            return False
        try:
            if not _COMPARATORS[flt.operator](value, flt.value):
                return False
        except TypeError:
            return False
    return True


class MemoryStore:
    """
    Process-local record store keyed by table.

    Each table maps record id to record; dict insertion order doubles as
    creation order. Records handed out are deep copies.
    """

    def __init__(self) -> None:
        self._tables: Dict[str, Dict[str, Record]] = {t.value: {} for t in Table}
        logger.info("Using in-memory storage")

    def is_connected(self) -> bool:
        return True

    def _table(self, table: Any) -> Optional[Dict[str, Record]]:
        return self._tables.get(table_name(table))

    def _require_table(self, table: Any) -> Dict[str, Record]:
        rows = self._table(table)
        if rows is None:
            raise NotFoundError(f"Unknown table: {table_name(table)}")
        return rows

    @staticmethod
    def generate_id() -> str:
        suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
        return f"mock_{suffix}_{int(time.time() * 1000)}"

    def find(self, table: Any, query: Optional[Query] = None) -> FindResult:
        """
        Filter, sort and paginate records of a table.

        Unknown tables yield an empty result. ``total`` counts all filter
        matches before pagination.
        """
        query = query or Query()
        rows = self._table(table)
        if rows is None:
            return FindResult(data=[], total=0)

        filters = query.active_filters()
        data = [record for record in rows.values() if _matches(record, filters)]
        total = len(data)

        if query.sort is not None:
            field = query.sort.field
            present = [r for r in data if r.get(field) is not None]
            absent = [r for r in data if r.get(field) is None]
            present.sort(key=lambda r: _sort_key(r[field]), reverse=not query.sort.ascending)
            data = present + absent

        if query.pagination is not None and query.pagination.is_active:
            start = query.pagination.offset
            data = data[start:start + query.pagination.limit]

        return FindResult(data=copy.deepcopy(data), total=total)

    def find_by_id(self, table: Any, record_id: str) -> Record:
        rows = self._require_table(table)
        record = rows.get(record_id)
        if record is None:
            raise NotFoundError(f"Record not found in {table_name(table)}")
        return copy.deepcopy(record)

    def create(self, table: Any, data: Record) -> Record:
        """
        Insert a record with a fresh id and timestamps.

        Raises:
            AlreadyExistsError: users table only, email checked before username
            NotFoundError: unknown table
        """
        name = table_name(table)
        rows = self._require_table(name)

        if name == Table.USERS.value:
            self._check_user_uniqueness(rows, data)

        now = _now()
        record = {**copy.deepcopy(data), "id": self.generate_id(), "created_at": now, "updated_at": now}
        rows[record["id"]] = record

        logger.debug(
            f"Created {name} record",
            extra={
                "extra_fields": {
                    "id": record["id"],
                    "email": data.get("email", "N/A"),
                    "username": data.get("username", "N/A"),
                }
            },
        )
        return copy.deepcopy(record)

    @staticmethod
    def _check_user_uniqueness(rows: Dict[str, Record], data: Record) -> None:
        email = data.get("email")
        if email and any(user.get("email") == email for user in rows.values()):
            raise AlreadyExistsError(DuplicateKind.EMAIL)

        username = data.get("username")
        if username and any(user.get("username") == username for user in rows.values()):
            raise AlreadyExistsError(DuplicateKind.USERNAME)

    def update(self, table: Any, record_id: str, data: Record) -> Record:
        """Merge ``data`` over an existing record and refresh ``updated_at``."""
        name = table_name(table)
        rows = self._require_table(name)
        current = rows.get(record_id)
        if current is None or name in APPEND_ONLY_TABLES:
            raise NotFoundError(f"Record not found in {name}")

        changes = {k: v for k, v in copy.deepcopy(data).items() if k not in ("id", "created_at")}
        updated = {**current, **changes, "updated_at": _now()}
        rows[record_id] = updated

        logger.debug(f"Updated {name} record {record_id}")
        return copy.deepcopy(updated)

    def delete(self, table: Any, record_id: str) -> None:
        name = table_name(table)
        rows = self._require_table(name)
        if name in APPEND_ONLY_TABLES or rows.pop(record_id, None) is None:
            raise NotFoundError(f"Record not found in {name}")

        logger.debug(f"Deleted {name} record {record_id}")

    def seed_baseline(self) -> int:
        """
        Add the demo user(s).

        Users whose email is already stored are skipped, so repeated calls
        never duplicate the baseline.

        Returns:
            Number of records created
        """
        logger.info("Seeding in-memory storage with sample data...")
        users = self._tables[Table.USERS.value]
        created = 0
        for user in BASELINE_USERS:
            if any(existing.get("email") == user["email"] for existing in users.values()):
                continue
            self.create(Table.USERS, user)
            created += 1

        logger.info(f"In-memory storage seeded ({created} records)")
        return created

    def clear_all(self) -> None:
        for rows in self._tables.values():
            rows.clear()
        logger.info("In-memory storage cleared")

    def get_stats(self) -> Dict[str, int]:
        """Record count per table."""
        return {name: len(rows) for name, rows in self._tables.items()}
