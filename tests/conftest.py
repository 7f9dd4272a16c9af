"""
tests/conftest.py — Shared pytest fixtures for the durable-cache test suite.

Provides:
  clock            — ManualClock, a settable stand-in for utcnow()
  memory_store     — fresh MemoryDocumentStore
  duckdb_store     — DuckDBDocumentStore on an in-memory database
  cache            — CacheStore over memory_store driven by the manual clock
  make_chain()     — chainable MagicMock mimicking a PostgREST request builder
  FailingStore     — memory store whose chosen operations raise StoreError
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import duckdb
import pytest

from durable_cache.cache import CacheStore
from durable_cache.config import CacheOptions
from durable_cache.exceptions import StoreError
from durable_cache.stores.duckdb_store import DuckDBDocumentStore
from durable_cache.stores.memory import MemoryDocumentStore

T0 = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class ManualClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now += timedelta(seconds=seconds)
        return self.now


class FailingStore(MemoryDocumentStore):
    """Memory store whose selected operations raise StoreError."""

    def __init__(self, *failing: str) -> None:
        super().__init__()
        self.failing = set(failing)

    def _maybe_fail(self, operation: str, collection: str) -> None:
        if operation in self.failing:
            raise StoreError(operation, collection, "connection reset") from ConnectionError()

    def upsert(self, collection, key, document):
        self._maybe_fail("upsert", collection)
        super().upsert(collection, key, document)

    def find_one(self, collection, key):
        self._maybe_fail("find_one", collection)
        return super().find_one(collection, key)

    def delete_one(self, collection, key):
        self._maybe_fail("delete_one", collection)
        return super().delete_one(collection, key)

    def delete_many(self, collection, *, expire_at_lte):
        self._maybe_fail("delete_many", collection)
        return super().delete_many(collection, expire_at_lte=expire_at_lte)


def make_chain(data=None):
    """Create a chainable mock that returns given data on execute()."""
    chain = MagicMock()
    chain.execute.return_value = MagicMock(data=data if data is not None else [])
    for method in ("select", "eq", "lte", "limit", "delete", "upsert", "insert"):
        getattr(chain, method).return_value = chain
    return chain


def make_supabase(chain=None):
    """Mock Supabase client whose every table() returns *chain*."""
    client = MagicMock()
    client.table.return_value = chain if chain is not None else make_chain()
    return client


# ---------------------------------------------------------------------------
# Clocks and stores
# ---------------------------------------------------------------------------

@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def memory_store() -> MemoryDocumentStore:
    return MemoryDocumentStore()


@pytest.fixture
def duckdb_store():
    conn = duckdb.connect(":memory:")
    yield DuckDBDocumentStore(conn)
    conn.close()


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------

@pytest.fixture
def options() -> CacheOptions:
    return CacheOptions(default_ttl=timedelta(seconds=60), collection_name="test_cache")


@pytest.fixture
def cache(memory_store, options, clock):
    with CacheStore(memory_store, options, clock=clock) as c:
        yield c
