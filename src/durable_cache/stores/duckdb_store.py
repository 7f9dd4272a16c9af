"""
stores/duckdb_store.py — DocumentStore backed by a DuckDB database file.

Each collection is a table, created on first use:

    key        VARCHAR PRIMARY KEY
    value      VARCHAR      -- JSON-encoded payload
    created_at TIMESTAMP    -- naive UTC
    expire_at  TIMESTAMP    -- naive UTC

Usage:
    from durable_cache.db import connect_duckdb
    from durable_cache.stores.duckdb_store import DuckDBDocumentStore

    store = DuckDBDocumentStore(connect_duckdb("./data/cache.duckdb"))

The connection is owned by the caller; this class never closes it.
"""

from __future__ import annotations

import json
import re
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, TypeVar

import duckdb
import structlog

from durable_cache.exceptions import StoreError
from durable_cache.stores.base import DocumentStore

log = structlog.get_logger(__name__)

T = TypeVar("T")

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_COLUMNS = "key, value, created_at, expire_at"


def _to_db_timestamp(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _from_db_timestamp(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc)


def _row_to_document(row: tuple[Any, ...]) -> dict[str, Any]:
    key, value, created_at, expire_at = row
    return {
        "key": key,
        "value": json.loads(value) if value is not None else None,
        "created_at": _from_db_timestamp(created_at),
        "expire_at": _from_db_timestamp(expire_at),
    }


@dataclass(frozen=True)
class DuckDBCollection:
    """Scoped handle passed to run_with_collection() callbacks."""

    connection: duckdb.DuckDBPyConnection
    table: str

    def find(self, keys: Iterable[str] | None = None) -> list[dict[str, Any]]:
        """Return the physical documents for *keys* (all when None), expired or not."""
        sql = f'SELECT {_COLUMNS} FROM "{self.table}"'
        params: list[Any] = []
        if keys is not None:
            wanted = list(keys)
            if not wanted:
                return []
            sql += f" WHERE key IN ({', '.join('?' for _ in wanted)})"
            params = wanted
        rows = self.connection.execute(sql + " ORDER BY key", params).fetchall()
        return [_row_to_document(row) for row in rows]

    def count(self) -> int:
        return self.connection.execute(f'SELECT count(*) FROM "{self.table}"').fetchone()[0]


class DuckDBDocumentStore(DocumentStore):
    """
    DuckDB implementation of DocumentStore.

    A single DuckDB connection is not safe for concurrent use, so every
    statement runs under an internal lock.
    """

    def __init__(self, connection: duckdb.DuckDBPyConnection) -> None:
        self._conn = connection
        self._lock = threading.Lock()
        self._ready: set[str] = set()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _ensure_table(self, collection: str) -> str:
        if collection in self._ready:
            return collection
        if not _IDENTIFIER_RE.match(collection):
            raise StoreError("create_table", collection, "invalid collection name")
        self._conn.execute(
            f'CREATE TABLE IF NOT EXISTS "{collection}" ('
            "key VARCHAR PRIMARY KEY, "
            "value VARCHAR, "
            "created_at TIMESTAMP NOT NULL, "
            "expire_at TIMESTAMP NOT NULL)"
        )
        self._ready.add(collection)
        log.debug("duckdb_table_ready", table=collection)
        return collection

    def _execute(
        self, operation: str, collection: str, sql: str, params: list[Any] | None = None
    ) -> list[tuple[Any, ...]]:
        with self._lock:
            try:
                table = self._ensure_table(collection)
                return self._conn.execute(sql.format(table=table), params or []).fetchall()
            except duckdb.Error as exc:
                raise StoreError(operation, collection, str(exc)) from exc

    @staticmethod
    def _row_params(collection: str, key: str, document: dict[str, Any]) -> list[Any]:
        try:
            value = json.dumps(document.get("value"))
        except (TypeError, ValueError) as exc:
            raise StoreError("serialize", collection, str(exc)) from exc
        return [
            key,
            value,
            _to_db_timestamp(document["created_at"]),
            _to_db_timestamp(document["expire_at"]),
        ]

    # ------------------------------------------------------------------
    # DocumentStore
    # ------------------------------------------------------------------

    def insert(self, collection: str, document: dict[str, Any]) -> None:
        self._execute(
            "insert",
            collection,
            f'INSERT INTO "{{table}}" ({_COLUMNS}) VALUES (?, ?, ?, ?)',
            self._row_params(collection, document["key"], document),
        )

    def upsert(self, collection: str, key: str, document: dict[str, Any]) -> None:
        self._execute(
            "upsert",
            collection,
            f'INSERT OR REPLACE INTO "{{table}}" ({_COLUMNS}) VALUES (?, ?, ?, ?)',
            self._row_params(collection, key, document),
        )

    def find_one(self, collection: str, key: str) -> dict[str, Any] | None:
        rows = self._execute(
            "find_one",
            collection,
            f'SELECT {_COLUMNS} FROM "{{table}}" WHERE key = ? LIMIT 1',
            [key],
        )
        if not rows:
            return None
        try:
            return _row_to_document(rows[0])
        except (TypeError, ValueError) as exc:
            raise StoreError("find_one", collection, f"undecodable document: {exc}") from exc

    def delete_one(self, collection: str, key: str) -> bool:
        rows = self._execute(
            "delete_one",
            collection,
            'DELETE FROM "{table}" WHERE key = ? RETURNING key',
            [key],
        )
        return bool(rows)

    def delete_many(self, collection: str, *, expire_at_lte: datetime) -> int:
        rows = self._execute(
            "delete_many",
            collection,
            'DELETE FROM "{table}" WHERE expire_at <= ? RETURNING key',
            [_to_db_timestamp(expire_at_lte)],
        )
        return len(rows)

    def run_with_collection(self, collection: str, fn: Callable[[Any], T]) -> T:
        with self._lock:
            try:
                table = self._ensure_table(collection)
            except duckdb.Error as exc:
                raise StoreError("run_with_collection", collection, str(exc)) from exc
            return fn(DuckDBCollection(connection=self._conn, table=table))
