"""
Supabase (PostgREST) implementation of the record store.

Translates the store operations into Supabase query-builder calls and
classifies every failure into the storage error taxonomy:

- ``PGRST116`` (no row for a single-row request) and updates/deletes that
  touch no rows become ``NotFoundError``.
- Postgres ``23505`` unique violations become ``AlreadyExistsError``.
- Updates and deletes on append-only tables are refused with
  ``NotFoundError`` without a request, as the in-memory store does.
- Everything else (other API errors, timeouts, refused connections,
  malformed responses) becomes ``ConnectivityOrQueryFailure``.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, Callable, Optional

import httpx
from postgrest.exceptions import APIError
from supabase import Client, create_client
from supabase.client import ClientOptions

from ..logging_config import get_logger
from .errors import (AlreadyExistsError, ConnectivityOrQueryFailure,
                     DuplicateKind, NotConfiguredError, NotFoundError,
                     StoreError)
from .query import (APPEND_ONLY_TABLES, FindResult, Query, Record, Table,
                    table_name)

logger = get_logger(__name__)

NOT_FOUND_CODES = frozenset({"PGRST116"})
UNIQUE_VIOLATION_CODES = frozenset({"23505"})


def _duplicate_kind(error: APIError) -> DuplicateKind:
    text = f"{error.message or ''} {error.details or ''}".lower()
    if "email" in text:
        return DuplicateKind.EMAIL
    if "username" in text:
        return DuplicateKind.USERNAME
    return DuplicateKind.OTHER


def classify_error(exc: Exception) -> StoreError:
    """
    Map a Supabase/transport exception to a storage error.

    Args:
        exc: Exception raised while talking to Supabase

    Returns:
        The domain error to raise in its place
    """
    if isinstance(exc, StoreError):
        return exc
    if isinstance(exc, APIError):
        if exc.code in NOT_FOUND_CODES:
            return NotFoundError()
        if exc.code in UNIQUE_VIOLATION_CODES:
            return AlreadyExistsError(_duplicate_kind(exc))
        return ConnectivityOrQueryFailure(f"Supabase query failed ({exc.code}): {exc.message}")
    if isinstance(exc, httpx.TimeoutException):
        return ConnectivityOrQueryFailure(f"Supabase request timed out: {exc}")
    if isinstance(exc, httpx.HTTPError):
        return ConnectivityOrQueryFailure(f"Supabase transport error: {exc}")
    return ConnectivityOrQueryFailure(f"Unexpected Supabase error: {exc}")


class SupabaseStore:
    """
    Record store backed by Supabase tables.

    The Supabase client is synchronous; each request runs in a worker
    thread and is bounded by ``timeout`` seconds at the HTTP layer.

    Attributes:
        url: Supabase project URL
        key: Service (or anon) key
        timeout: PostgREST request timeout in seconds
    """

    def __init__(
        self,
        url: str,
        key: str,
        timeout: int = 10,
        client: Optional[Client] = None,
    ) -> None:
        self.url = url
        self.key = key
        self.timeout = timeout
        self._client = client

        if not self.is_configured and client is None:
            logger.warning("Supabase credentials not fully configured")
            logger.debug(f"SUPABASE_URL: {'set' if self.url else 'not set'}")
            logger.debug(f"SUPABASE key: {'set' if self.key else 'not set'}")

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self.key)

    @property
    def client(self) -> Client:
        """
        Get or create the Supabase client.

        Raises:
            NotConfiguredError: If URL or key is missing
            ConnectivityOrQueryFailure: If the client cannot be created
        """
        if self._client is None:
            if not self.is_configured:
                raise NotConfiguredError()
            logger.info("Initializing Supabase client...")
            try:
                self._client = create_client(
                    self.url,
                    self.key,
                    options=ClientOptions(postgrest_client_timeout=self.timeout),
                )
            except Exception as e:
                raise ConnectivityOrQueryFailure(f"Failed to create Supabase client: {e}") from e
            logger.info("Supabase client initialized successfully")
        return self._client

    async def _run(self, operation: str, call: Callable[[Client], Any]) -> Any:
        client = self.client
        try:
            return await asyncio.to_thread(call, client)
        except Exception as e:
            error = classify_error(e)
            if isinstance(error, ConnectivityOrQueryFailure):
                logger.warning(f"Supabase {operation} failed: {error.message}")
            raise error from e

    async def find(self, table: Any, query: Optional[Query] = None) -> FindResult:
        query = query or Query()
        name = table_name(table)

        def call(client: Client):
            request = client.table(name).select("*", count="exact")
            for field, flt in query.active_filters():
                request = getattr(request, flt.operator)(field, flt.value)
            if query.sort is not None:
                request = request.order(query.sort.field, desc=not query.sort.ascending)
            if query.pagination is not None and query.pagination.is_active:
                start = query.pagination.offset
                request = request.range(start, start + query.pagination.limit - 1)
            return request.execute()

        response = await self._run("find", call)
        data = response.data
        if data is None:
            data = []
        if not isinstance(data, list):
            raise ConnectivityOrQueryFailure("Malformed find response from Supabase")
        return FindResult(data=data, total=response.count or 0)

    async def find_by_id(self, table: Any, record_id: str) -> Record:
        name = table_name(table)

        def call(client: Client):
            return client.table(name).select("*").eq("id", record_id).single().execute()

        response = await self._run("find_by_id", call)
        if not isinstance(response.data, dict):
            raise ConnectivityOrQueryFailure("Malformed find_by_id response from Supabase")
        return response.data

    async def create(self, table: Any, data: Record) -> Record:
        name = table_name(table)

        def call(client: Client):
            return client.table(name).insert(data).execute()

        response = await self._run("create", call)
        return self._single_row(response, "create")

    async def update(self, table: Any, record_id: str, data: Record) -> Record:
        name = table_name(table)
        if name in APPEND_ONLY_TABLES:
            raise NotFoundError(f"Record not found in {name}")
        changes = {**data, "updated_at": datetime.now(timezone.utc).isoformat()}

        def call(client: Client):
            return client.table(name).update(changes).eq("id", record_id).execute()

        response = await self._run("update", call)
        if not response.data:
            raise NotFoundError(f"Record not found in {name}")
        return self._single_row(response, "update")

    async def delete(self, table: Any, record_id: str) -> None:
        name = table_name(table)
        if name in APPEND_ONLY_TABLES:
            raise NotFoundError(f"Record not found in {name}")

        def call(client: Client):
            return client.table(name).delete().eq("id", record_id).execute()

        response = await self._run("delete", call)
        if not response.data:
            raise NotFoundError(f"Record not found in {name}")

    async def is_connected(self) -> bool:
        """Count probe against the users table; never raises."""

        def call(client: Client):
            return client.table(Table.USERS.value).select("id", count="exact").limit(1).execute()

        try:
            await self._run("is_connected", call)
            return True
        except StoreError as e:
            logger.warning(f"Supabase connectivity check failed: {e.message}")
            return False

    @staticmethod
    def _single_row(response: Any, operation: str) -> Record:
        rows = response.data
        if not isinstance(rows, list) or not rows or not isinstance(rows[0], dict):
            raise ConnectivityOrQueryFailure(f"Malformed {operation} response from Supabase")
        return rows[0]
