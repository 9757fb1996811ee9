"""
Database façade with automatic fallback to in-memory storage.

Route handlers talk to one ``Database`` instance regardless of which store
is answering. While in ``REMOTE`` mode every call goes to Supabase; the
first connectivity or query failure switches the instance to ``FALLBACK``
for the rest of the process, seeds a fresh in-memory store and re-runs the
failed call against it. There is no automatic way back to ``REMOTE``.
"""

import asyncio
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from ..config import Settings
from ..logging_config import get_logger
from ..metrics import (db_using_fallback, track_db_operation,
                       track_fallback_transition)
from .errors import ConnectivityOrQueryFailure, StoreError
from .memory_store import MemoryStore
from .query import FindResult, Query, Record
from .remote_store import SupabaseStore

logger = get_logger(__name__)

T = TypeVar("T")


class ConnectionMode(str, Enum):
    REMOTE = "remote"
    FALLBACK = "fallback"


class Database:
    """
    Single entry point for record CRUD.

    The connection mode and the active in-memory store are only changed by
    ``_switch_to_fallback``, which runs under a lock and at most once.

    Attributes:
        remote: Supabase store, ``None`` when credentials are absent
    """

    def __init__(self, remote: Optional[SupabaseStore] = None) -> None:
        self.remote = remote
        self._memory: Optional[MemoryStore] = None
        self._lock = asyncio.Lock()
        self._seeded = False

        if remote is None:
            logger.warning("Supabase not configured, using in-memory storage")
            self._mode = ConnectionMode.FALLBACK
            self._memory = self._build_fallback_store()
            db_using_fallback.set(1)
        else:
            self._mode = ConnectionMode.REMOTE
            db_using_fallback.set(0)

    @property
    def mode(self) -> ConnectionMode:
        return self._mode

    @property
    def using_fallback(self) -> bool:
        return self._mode is ConnectionMode.FALLBACK

    def _build_fallback_store(self) -> MemoryStore:
        store = MemoryStore()
        if not self._seeded:
            store.seed_baseline()
            self._seeded = True
        return store

    async def _switch_to_fallback(self, reason: str) -> MemoryStore:
        """Install the in-memory store once; later callers reuse it."""
        async with self._lock:
            if self._mode is ConnectionMode.FALLBACK and self._memory is not None:
                return self._memory

            logger.warning(
                "Supabase unavailable, switching to in-memory storage",
                extra={"extra_fields": {"reason": reason}},
            )
            self._memory = self._build_fallback_store()
            self._mode = ConnectionMode.FALLBACK
            track_fallback_transition()
            return self._memory

    async def _call(
        self,
        operation: str,
        remote_call: Callable[[SupabaseStore], Awaitable[T]],
        memory_call: Callable[[MemoryStore], T],
    ) -> T:
        if self._mode is ConnectionMode.REMOTE and self.remote is not None:
            started = time.perf_counter()
            try:
                result = await remote_call(self.remote)
            except ConnectivityOrQueryFailure as e:
                track_db_operation(operation, "remote", False, time.perf_counter() - started)
                memory = await self._switch_to_fallback(e.message)
                return self._call_memory(operation, memory, memory_call)
            except StoreError:
                track_db_operation(operation, "remote", False, time.perf_counter() - started)
                raise
            track_db_operation(operation, "remote", True, time.perf_counter() - started)
            return result

        memory = self._memory
        if memory is None:
            memory = await self._switch_to_fallback("remote store missing")
        return self._call_memory(operation, memory, memory_call)

    @staticmethod
    def _call_memory(
        operation: str,
        memory: MemoryStore,
        memory_call: Callable[[MemoryStore], T],
    ) -> T:
        started = time.perf_counter()
        try:
            result = memory_call(memory)
        except StoreError:
            track_db_operation(operation, "memory", False, time.perf_counter() - started)
            raise
        track_db_operation(operation, "memory", True, time.perf_counter() - started)
        return result

    async def find(self, table: Any, query: Optional[Query] = None) -> FindResult:
        """
        Find records matching a query.

        Args:
            table: Table name or ``Table`` member
            query: Filters, sort and pagination (all optional)

        Returns:
            Matching page of records and the total match count
        """
        query = query or Query()
        return await self._call(
            "find",
            lambda remote: remote.find(table, query),
            lambda memory: memory.find(table, query),
        )

    async def find_by_id(self, table: Any, record_id: str) -> Record:
        """
        Fetch one record by id.

        Raises:
            NotFoundError: If no such record exists
            NotConfiguredError: If the remote store has no credentials
        """
        return await self._call(
            "find_by_id",
            lambda remote: remote.find_by_id(table, record_id),
            lambda memory: memory.find_by_id(table, record_id),
        )

    async def create(self, table: Any, data: Record) -> Record:
        """
        Insert a record.

        Raises:
            AlreadyExistsError: On a uniqueness violation (``kind`` tells
                email from username)
        """
        return await self._call(
            "create",
            lambda remote: remote.create(table, data),
            lambda memory: memory.create(table, data),
        )

    async def update(self, table: Any, record_id: str, data: Record) -> Record:
        return await self._call(
            "update",
            lambda remote: remote.update(table, record_id, data),
            lambda memory: memory.update(table, record_id, data),
        )

    async def delete(self, table: Any, record_id: str) -> None:
        await self._call(
            "delete",
            lambda remote: remote.delete(table, record_id),
            lambda memory: memory.delete(table, record_id),
        )

    async def is_connected(self) -> bool:
        """
        Report whether the active store is reachable.

        In remote mode this only probes Supabase; a failed probe does not
        switch to fallback.
        """
        if self._mode is ConnectionMode.REMOTE and self.remote is not None:
            return await self.remote.is_connected()
        return self._memory is not None and self._memory.is_connected()

    def stats(self) -> Dict[str, int]:
        """Per-table record counts of the in-memory store (empty in remote mode)."""
        if self._memory is None:
            return {}
        return self._memory.get_stats()

    def clear_fallback(self) -> bool:
        """
        Empty the in-memory store.

        Returns:
            False when running against Supabase (nothing cleared)
        """
        if not self.using_fallback or self._memory is None:
            return False
        self._memory.clear_all()
        return True

    def __repr__(self) -> str:
        return f"Database(mode={self._mode.value})"


def create_database(settings: Settings) -> Database:
    """
    Build the database façade from settings.

    Without Supabase credentials the instance starts in fallback mode.
    """
    if not settings.supabase_configured:
        return Database()

    remote = SupabaseStore(
        url=settings.SUPABASE_URL,
        key=settings.supabase_key,
        timeout=settings.SUPABASE_TIMEOUT_SECONDS,
    )
    logger.info(f"Using Supabase at {settings.SUPABASE_URL}")
    return Database(remote=remote)


__all__ = ["ConnectionMode", "Database", "create_database"]
