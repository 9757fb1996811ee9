# Test configuration
import os

import httpx
import pytest

# Set test environment variables BEFORE importing package modules
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["SUPABASE_URL"] = ""
os.environ["SUPABASE_ANON_KEY"] = ""
os.environ["SUPABASE_SERVICE_KEY"] = ""

from marketplace_api.storage import SupabaseStore  # noqa: E402
from supabase_mocks import make_supabase_client  # noqa: E402

SUPABASE_URL = "https://example.supabase.co"


@pytest.fixture
def supabase_client():
    """Mock Supabase client and its query builder."""
    return make_supabase_client()


@pytest.fixture
def remote_store(supabase_client):
    """Supabase store backed by the mock client."""
    client, _ = supabase_client
    return SupabaseStore(url=SUPABASE_URL, key="test-key", client=client)


@pytest.fixture
def failing_remote(supabase_client):
    """Supabase store whose every request fails with a connection error, plus its builder."""
    client, builder = supabase_client
    builder.execute.side_effect = httpx.ConnectError("connection refused")
    return SupabaseStore(url=SUPABASE_URL, key="test-key", client=client), builder
