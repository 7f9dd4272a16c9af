"""
cache.py — TTL key-value cache on top of a DocumentStore.

Entries expire two ways:
  - lazily: get() never returns an expired entry, and deletes the stale
    document it found (best effort)
  - eagerly: an optional background Sweeper bulk-deletes every document
    whose expire_at has passed

Every operation, including each sweep, holds one exclusive lock for its
whole duration, store round trip included. Operations are therefore
strictly serialized per CacheStore.

The document store is injected and owned by the caller. CacheStore never
closes it, and several caches with different options may share one store.

Usage:
    from durable_cache import CacheOptions, CacheStore, NotFoundError
    from durable_cache.stores import MemoryDocumentStore

    cache = CacheStore(MemoryDocumentStore(), CacheOptions(default_ttl=30))
    cache.set("user:1", {"name": "Ada"})
    cache.set_with_ttl("otp:1", "493021", timedelta(seconds=90))

    try:
        value = cache.get("user:1")
    except NotFoundError:
        value = None

    cache.start_sweep(timedelta(minutes=1))
    ...
    cache.stop_sweep()
"""

from __future__ import annotations

import threading
from typing import Any, Callable, TypeVar

from durable_cache.config import CacheOptions, Settings
from durable_cache.exceptions import NotFoundError, StoreError
from durable_cache.expiration import (
    Clock,
    Duration,
    as_timedelta,
    compute_expire_at,
    is_expired,
    utcnow,
)
from durable_cache.logging import get_logger
from durable_cache.models import Entry
from durable_cache.stores.base import DocumentStore
from durable_cache.sweeper import Sweeper

T = TypeVar("T")


class CacheStore:
    """TTL cache persisted in a shared document store."""

    def __init__(
        self,
        store: DocumentStore,
        options: CacheOptions | None = None,
        *,
        clock: Clock = utcnow,
    ) -> None:
        self._store = store
        self._options = options or CacheOptions()
        self._clock = clock
        self._lock = threading.Lock()
        self._sweeper: Sweeper | None = None
        self._sweeper_lock = threading.Lock()
        self._log = get_logger(__name__, collection=self._options.collection_name)

        if self._options.start_sweep:
            self.start_sweep(self._options.sweep_interval)

    @classmethod
    def from_settings(
        cls, store: DocumentStore, source: Settings, *, clock: Clock = utcnow
    ) -> "CacheStore":
        return cls(store, CacheOptions.from_settings(source), clock=clock)

    # ------------------------------------------------------------------
    # Configuration (read-only)
    # ------------------------------------------------------------------

    @property
    def options(self) -> CacheOptions:
        return self._options

    @property
    def collection_name(self) -> str:
        return self._options.collection_name

    @property
    def sweeping(self) -> bool:
        return self._sweeper is not None

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, key: str) -> Any:
        """
        Return the value stored under *key*.

        Raises NotFoundError when the key is absent or expired, StoreError
        when the backend fails.
        """
        return self.get_entry(key).value

    def get_entry(self, key: str) -> Entry:
        """Like get(), but returns the whole Entry including its timestamps."""
        collection = self._options.collection_name
        with self._lock:
            document = self._store.find_one(collection, key)
            if document is None:
                raise NotFoundError(key)

            try:
                entry = Entry.from_document(document)
            except (KeyError, ValueError) as exc:
                raise StoreError(
                    "find_one", collection, f"malformed document for {key!r}: {exc}"
                ) from exc
            if is_expired(entry, self._clock()):
                try:
                    self._store.delete_one(collection, key)
                except StoreError as exc:
                    self._log.warning("stale_delete_failed", key=key, error=str(exc))
                else:
                    self._log.debug("stale_entry_expired", key=key)
                raise NotFoundError(key)

            return entry

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def set(self, key: str, value: Any) -> None:
        """Store *value* under *key* with the default TTL."""
        self.set_with_ttl(key, value, self._options.default_ttl)

    def set_with_ttl(self, key: str, value: Any, ttl: Duration) -> None:
        """
        Store *value* under *key*, expiring *ttl* from now.

        Replaces any existing document for the key (last writer wins). A zero
        or negative ttl stores an entry that is already expired.

        *value* must be JSON-native (dict, list, str, int, float, bool, None).
        Durable backends store it as JSON, so tuples come back as lists and
        non-string dict keys come back as strings.
        """
        ttl = as_timedelta(ttl)
        with self._lock:
            now = self._clock()
            entry = Entry(
                key=key,
                value=value,
                created_at=now,
                expire_at=compute_expire_at(now, ttl),
            )
            self._store.upsert(self._options.collection_name, key, entry.to_document())

    def delete(self, key: str) -> None:
        """Remove *key*. Deleting a missing key is not an error."""
        with self._lock:
            self._store.delete_one(self._options.collection_name, key)

    def delete_expired(self) -> int:
        """Physically remove every expired document. Returns how many went."""
        with self._lock:
            now = self._clock()
            deleted = self._store.delete_many(
                self._options.collection_name, expire_at_lte=now
            )
        if deleted:
            self._log.info("sweep_complete", deleted=deleted)
        else:
            self._log.debug("sweep_complete", deleted=0)
        return deleted

    # ------------------------------------------------------------------
    # Background sweep
    # ------------------------------------------------------------------

    def start_sweep(self, interval: Duration) -> None:
        """
        Start sweeping every *interval*, replacing any running sweeper.

        A non-positive interval is ignored.
        """
        interval = as_timedelta(interval)
        if interval.total_seconds() <= 0:
            return

        sweeper = Sweeper(
            self.delete_expired,
            interval,
            name=f"durable-cache-sweeper:{self._options.collection_name}",
        )
        with self._sweeper_lock:
            previous, self._sweeper = self._sweeper, sweeper
            if previous is not None:
                previous.stop()
            sweeper.start()

    def stop_sweep(self) -> None:
        """
        Stop the background sweeper, if any, without waiting for it.

        The document store is left open.
        """
        with self._sweeper_lock:
            sweeper, self._sweeper = self._sweeper, None
        if sweeper is not None:
            sweeper.stop()

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def run_with_collection(self, fn: Callable[[Any], T]) -> T:
        """Run *fn* against the backend's native handle for this cache's collection."""
        return self._store.run_with_collection(self._options.collection_name, fn)

    def __enter__(self) -> "CacheStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop_sweep()

    def __repr__(self) -> str:
        return (
            f"CacheStore(collection={self._options.collection_name!r}, "
            f"default_ttl={self._options.default_ttl}, sweeping={self.sweeping})"
        )
