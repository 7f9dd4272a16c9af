"""
stores/supabase_store.py — DocumentStore over the Supabase (PostgREST) client.

Each collection maps to a table that must already exist:

    create table cache_entries (
        key        text primary key,
        value      jsonb,
        created_at timestamptz not null,
        expire_at  timestamptz not null
    );
    create index on cache_entries (expire_at);

Usage:
    from durable_cache.db import create_supabase_client
    from durable_cache.stores.supabase_store import SupabaseDocumentStore

    store = SupabaseDocumentStore(create_supabase_client())

Use the service role key: cache writes and the expiry sweep bypass RLS.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, TypeVar

import structlog
from pydantic import TypeAdapter
from supabase import Client

from durable_cache.exceptions import StoreError
from durable_cache.stores.base import DocumentStore

log = structlog.get_logger(__name__)

T = TypeVar("T")

_SELECT = "key,value,created_at,expire_at"
_datetime = TypeAdapter(datetime)


def _to_iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _to_row(key: str, document: dict[str, Any]) -> dict[str, Any]:
    return {
        "key": key,
        "value": document.get("value"),
        "created_at": _to_iso(document["created_at"]),
        "expire_at": _to_iso(document["expire_at"]),
    }


def _from_row(row: dict[str, Any]) -> dict[str, Any]:
    return {
        "key": row["key"],
        "value": row.get("value"),
        "created_at": _datetime.validate_python(row["created_at"]),
        "expire_at": _datetime.validate_python(row["expire_at"]),
    }


class SupabaseDocumentStore(DocumentStore):
    """Stores cache documents in Supabase tables, one table per collection."""

    def __init__(self, client: Client) -> None:
        self._client = client

    def insert(self, collection: str, document: dict[str, Any]) -> None:
        try:
            self._client.table(collection).insert(
                _to_row(document["key"], document)
            ).execute()
        except Exception as exc:
            raise StoreError("insert", collection, str(exc)) from exc

    def upsert(self, collection: str, key: str, document: dict[str, Any]) -> None:
        try:
            self._client.table(collection).upsert(
                _to_row(key, document),
                on_conflict="key",
            ).execute()
        except Exception as exc:
            raise StoreError("upsert", collection, str(exc)) from exc

    def find_one(self, collection: str, key: str) -> dict[str, Any] | None:
        try:
            result = (
                self._client.table(collection)
                .select(_SELECT)
                .eq("key", key)
                .limit(1)
                .execute()
            )
        except Exception as exc:
            raise StoreError("find_one", collection, str(exc)) from exc
        if not result.data:
            return None
        try:
            return _from_row(result.data[0])
        except (KeyError, ValueError) as exc:
            raise StoreError("find_one", collection, f"undecodable document: {exc}") from exc

    def delete_one(self, collection: str, key: str) -> bool:
        try:
            result = self._client.table(collection).delete().eq("key", key).execute()
        except Exception as exc:
            raise StoreError("delete_one", collection, str(exc)) from exc
        return bool(result.data)

    def delete_many(self, collection: str, *, expire_at_lte: datetime) -> int:
        try:
            result = (
                self._client.table(collection)
                .delete()
                .lte("expire_at", _to_iso(expire_at_lte))
                .execute()
            )
        except Exception as exc:
            raise StoreError("delete_many", collection, str(exc)) from exc
        deleted = len(result.data or [])
        log.debug("supabase_rows_deleted", table=collection, count=deleted)
        return deleted

    def run_with_collection(self, collection: str, fn: Callable[[Any], T]) -> T:
        return fn(self._client.table(collection))
