"""Error types raised by durable-cache."""

from __future__ import annotations


class CacheError(Exception):
    """Base class for every error raised by this package."""


class NotFoundError(CacheError):
    """The key is absent, or present but expired. Callers cannot tell which."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"cache key not found: {key!r}")


class StoreError(CacheError):
    """
    A document-store operation failed.

    The backend exception is always chained as ``__cause__``.
    """

    def __init__(self, operation: str, collection: str, message: str) -> None:
        self.operation = operation
        self.collection = collection
        super().__init__(f"{operation} on {collection!r} failed: {message}")
