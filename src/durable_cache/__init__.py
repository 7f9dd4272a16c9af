"""
durable_cache — TTL key-value cache backed by a persistent document store.

Cached values survive restarts and can be shared by several service
instances pointing at the same store.

Architecture:
  cache.py       — CacheStore: get/set/delete, lazy expiry, one exclusive lock
  sweeper.py     — background thread that bulk-deletes expired documents
  expiration.py  — when an entry is dead, and when a new one will be
  stores/        — DocumentStore interface plus memory, DuckDB and Supabase backends
  config.py      — pydantic-settings Settings and the CacheOptions record
  db.py          — connection factories (no singletons)
  cli.py         — `durable-cache` click CLI

Quick start:
    from durable_cache import CacheOptions, CacheStore
    from durable_cache.db import open_document_store

    cache = CacheStore(open_document_store(), CacheOptions(default_ttl=300, start_sweep=True))
    cache.set("greeting", "hello")
    cache.get("greeting")
"""

from durable_cache.cache import CacheStore
from durable_cache.config import CacheOptions
from durable_cache.exceptions import CacheError, NotFoundError, StoreError
from durable_cache.models import Entry

__version__ = "0.1.0"

__all__ = [
    "CacheError",
    "CacheOptions",
    "CacheStore",
    "Entry",
    "NotFoundError",
    "StoreError",
]
