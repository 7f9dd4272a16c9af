"""
stores — DocumentStore backends.

  base            — the abstract interface CacheStore consumes
  memory          — process-local dict store
  duckdb_store    — DuckDB file-backed store
  supabase_store  — Supabase / PostgREST store
"""

from durable_cache.stores.base import DocumentStore
from durable_cache.stores.memory import MemoryDocumentStore

__all__ = ["DocumentStore", "MemoryDocumentStore"]
