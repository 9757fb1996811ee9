"""
Query description shared by the in-memory and remote stores.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

Record = Dict[str, Any]


class Table(str, Enum):
    """Logical tables known to the data layer."""

    USERS = "users"
    NFTS = "nfts"
    TRANSACTIONS = "transactions"
    ACTIVITY_LOGS = "activity_logs"


APPEND_ONLY_TABLES = frozenset({Table.ACTIVITY_LOGS.value})

COMPARISON_OPERATORS = frozenset({"eq", "neq", "gt", "gte", "lt", "lte"})


@dataclass(frozen=True)
class Filter:
    """Explicit comparison for a single field, e.g. ``Filter("gte", 100)``."""

    operator: str
    value: Any

    def __post_init__(self) -> None:
        if self.operator not in COMPARISON_OPERATORS:
            raise ValueError(f"Unsupported filter operator: {self.operator}")


@dataclass(frozen=True)
class Sort:
    field: str
    ascending: bool = True


@dataclass(frozen=True)
class Pagination:
    """
    Slice of ``limit`` records.

    Either a 1-based ``page`` or an explicit ``skip`` offset; ``skip`` wins
    when set.
    """

    page: int = 1
    limit: int = 0
    skip: Optional[int] = None

    @classmethod
    def from_offset(cls, skip: int, limit: int) -> "Pagination":
        return cls(limit=limit, skip=skip)

    @property
    def is_active(self) -> bool:
        if self.limit <= 0:
            return False
        if self.skip is not None:
            return self.skip >= 0
        return self.page > 0

    @property
    def offset(self) -> int:
        if self.skip is not None:
            return self.skip
        return (self.page - 1) * self.limit


@dataclass
class Query:
    """
    Request against one table.

    Attributes:
        filters: field -> value (equality), field -> Filter, or field ->
            list of Filters (all must hold, e.g. a range). ``None`` values
            are ignored.
        sort: Optional ordering; insertion order is kept without one.
        pagination: Optional page/limit slice applied after filtering.
    """

    filters: Dict[str, Any] = field(default_factory=dict)
    sort: Optional[Sort] = None
    pagination: Optional[Pagination] = None

    def active_filters(self) -> List[Tuple[str, Filter]]:
        """(field, Filter) pairs with ``None`` entries dropped and plain values as ``eq``."""
        active = []
        for name, value in self.filters.items():
            if value is None:
                continue
            if isinstance(value, Filter):
                active.append((name, value))
            elif isinstance(value, (list, tuple)) and all(isinstance(v, Filter) for v in value):
                active.extend((name, flt) for flt in value)
            else:
                active.append((name, Filter("eq", value)))
        return active


@dataclass
class FindResult:
    """Matching records plus the pre-pagination match count."""

    data: List[Record]
    total: int


def table_name(table: Any) -> str:
    """Accept either a ``Table`` member or a plain string."""
    return table.value if isinstance(table, Table) else str(table)
