"""
stores/base.py — Abstract document store consumed by CacheStore.

A backend keeps named collections of documents keyed by their "key" field
(see durable_cache.models for the document shape). CacheStore only needs
point operations plus one predicate delete on expire_at; everything else
about storage is the backend's business.

Every backend failure must surface as durable_cache.exceptions.StoreError,
chained to the backend exception.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Callable, TypeVar

T = TypeVar("T")


class DocumentStore(ABC):
    """Durable key/document backend shared by any number of caches."""

    @abstractmethod
    def insert(self, collection: str, document: dict[str, Any]) -> None:
        """Insert a new document. Raises StoreError if the key already exists."""
        ...

    @abstractmethod
    def upsert(self, collection: str, key: str, document: dict[str, Any]) -> None:
        """Insert or fully replace the document stored under *key*."""
        ...

    @abstractmethod
    def find_one(self, collection: str, key: str) -> dict[str, Any] | None:
        """Return the document stored under *key*, or None."""
        ...

    @abstractmethod
    def delete_one(self, collection: str, key: str) -> bool:
        """Delete the document under *key*. Returns whether one was removed."""
        ...

    @abstractmethod
    def delete_many(self, collection: str, *, expire_at_lte: datetime) -> int:
        """Delete every document with expire_at <= *expire_at_lte*. Returns the count."""
        ...

    @abstractmethod
    def run_with_collection(self, collection: str, fn: Callable[[Any], T]) -> T:
        """
        Call *fn* with a backend-native handle for *collection*.

        Meant for tests and diagnostics that need to look at the physical
        documents directly, bypassing expiry rules.
        """
        ...
