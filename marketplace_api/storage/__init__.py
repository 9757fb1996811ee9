"""
Storage layer: Supabase-backed records with in-memory fallback.
"""

from .database import ConnectionMode, Database, create_database
from .errors import (AlreadyExistsError, ConnectivityOrQueryFailure,
                     DuplicateKind, NotConfiguredError, NotFoundError,
                     StoreError)
from .memory_store import MemoryStore
from .query import FindResult, Filter, Pagination, Query, Record, Sort, Table
from .remote_store import SupabaseStore

__all__ = [
    "AlreadyExistsError",
    "ConnectionMode",
    "ConnectivityOrQueryFailure",
    "Database",
    "DuplicateKind",
    "Filter",
    "FindResult",
    "MemoryStore",
    "NotConfiguredError",
    "NotFoundError",
    "Pagination",
    "Query",
    "Record",
    "Sort",
    "StoreError",
    "SupabaseStore",
    "Table",
    "create_database",
]
