"""Process-local DocumentStore, used by tests and single-process deployments."""

from __future__ import annotations

import copy
import threading
from datetime import datetime
from typing import Any, Callable, TypeVar

from durable_cache.exceptions import StoreError
from durable_cache.stores.base import DocumentStore

T = TypeVar("T")


class MemoryDocumentStore(DocumentStore):
    """Dict-of-dicts store. Documents are deep-copied in and out."""

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._lock = threading.Lock()

    def _collection(self, name: str) -> dict[str, dict[str, Any]]:
        return self._collections.setdefault(name, {})

    def insert(self, collection: str, document: dict[str, Any]) -> None:
        key = document["key"]
        with self._lock:
            docs = self._collection(collection)
            if key in docs:
                raise StoreError("insert", collection, f"duplicate key {key!r}")
            docs[key] = copy.deepcopy(document)

    def upsert(self, collection: str, key: str, document: dict[str, Any]) -> None:
        with self._lock:
            self._collection(collection)[key] = copy.deepcopy({**document, "key": key})

    def find_one(self, collection: str, key: str) -> dict[str, Any] | None:
        with self._lock:
            doc = self._collection(collection).get(key)
            return copy.deepcopy(doc) if doc is not None else None

    def delete_one(self, collection: str, key: str) -> bool:
        with self._lock:
            return self._collection(collection).pop(key, None) is not None

    def delete_many(self, collection: str, *, expire_at_lte: datetime) -> int:
        with self._lock:
            docs = self._collection(collection)
            expired = [k for k, doc in docs.items() if doc["expire_at"] <= expire_at_lte]
            for k in expired:
                del docs[k]
            return len(expired)

    def run_with_collection(self, collection: str, fn: Callable[[Any], T]) -> T:
        with self._lock:
            snapshot = copy.deepcopy(self._collection(collection))
        return fn(snapshot)
