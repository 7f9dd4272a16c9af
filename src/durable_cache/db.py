"""
db.py — Factories that open document-store connections.

Nothing here is cached at module level: each call returns a fresh
connection that the caller owns and closes. Hand the result to a
DocumentStore, and the store to as many CacheStore instances as needed.

Usage:
    from durable_cache.db import connect_duckdb, create_supabase_client, open_document_store

    store = open_document_store()                     # backend from settings.cache_backend
    duck = connect_duckdb(":memory:")
    supabase = create_supabase_client()               # service role key
"""

from __future__ import annotations

from pathlib import Path

import duckdb
import structlog
from supabase import Client, create_client

from durable_cache.config import Settings, settings
from durable_cache.stores.base import DocumentStore

logger = structlog.get_logger(__name__)


def create_supabase_client(
    url: str | None = None,
    key: str | None = None,
) -> Client:
    """
    Return a new Supabase client.

    Args:
        url: Project URL. Defaults to settings.supabase_url.
        key: API key. Defaults to settings.supabase_service_key.

    Returns:
        supabase.Client instance.
    """
    url = url or settings.supabase_url
    key = key or settings.supabase_service_key
    if not key:
        raise RuntimeError(
            "SUPABASE_SERVICE_KEY is not set. Set it in .env or pass key= explicitly."
        )
    client = create_client(url, key)
    logger.info("supabase_client_created", url=url)
    return client


def connect_duckdb(path: str | None = None) -> duckdb.DuckDBPyConnection:
    """
    Open a DuckDB connection.

    The file path defaults to settings.duckdb_path; parent directories are
    created when missing. ":memory:" opens a throwaway in-memory database.
    """
    db_path = path or settings.duckdb_path
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = duckdb.connect(db_path)
    logger.info("duckdb_connected", path=db_path)
    return conn


def open_document_store(source: Settings | None = None) -> DocumentStore:
    """Build the DocumentStore selected by ``cache_backend``."""
    source = source or settings
    backend = source.cache_backend

    if backend == "duckdb":
        from durable_cache.stores.duckdb_store import DuckDBDocumentStore

        return DuckDBDocumentStore(connect_duckdb(source.duckdb_path))
    if backend == "supabase":
        from durable_cache.stores.supabase_store import SupabaseDocumentStore

        return SupabaseDocumentStore(
            create_supabase_client(source.supabase_url, source.supabase_service_key)
        )
    if backend == "memory":
        from durable_cache.stores.memory import MemoryDocumentStore

        return MemoryDocumentStore()
    raise ValueError(f"unknown cache backend: {backend!r}")
