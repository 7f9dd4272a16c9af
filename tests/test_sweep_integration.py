"""
tests/test_sweep_integration.py — End-to-end expiry against a real DuckDB store.

Uses wall-clock time. Physical presence is checked with run_with_collection(),
which bypasses the expiry rules applied by get().
"""

from __future__ import annotations

import time
from datetime import timedelta

import pytest

from durable_cache.cache import CacheStore
from durable_cache.config import CacheOptions
from durable_cache.exceptions import NotFoundError


def _documents(cache: CacheStore, *keys: str):
    return cache.run_with_collection(lambda coll: coll.find(keys))


def test_lazy_expiry_without_sweep(duckdb_store):
    cache = CacheStore(
        duckdb_store,
        CacheOptions(default_ttl=timedelta(milliseconds=100), collection_name="lazy"),
    )
    cache.set("a", "1")

    time.sleep(0.05)
    assert cache.get("a") == "1"

    time.sleep(0.1)
    with pytest.raises(NotFoundError):
        cache.get("a")


def test_sweep_physically_removes_expired_documents(duckdb_store):
    options = CacheOptions(
        default_ttl=timedelta(milliseconds=50),
        sweep_interval=timedelta(milliseconds=100),
        start_sweep=True,
        collection_name="swept",
    )
    with CacheStore(duckdb_store, options) as cache:
        cache.set("a", "1")
        cache.set("b", "2")
        assert cache.get("a") == "1"
        assert cache.get("b") == "2"
        assert len(_documents(cache, "a", "b")) == 2

        time.sleep(0.25)

        assert _documents(cache, "a", "b") == []


def test_no_sweeps_after_stop(duckdb_store):
    options = CacheOptions(
        default_ttl=timedelta(milliseconds=30),
        sweep_interval=timedelta(milliseconds=50),
        start_sweep=True,
        collection_name="stopped",
    )
    cache = CacheStore(duckdb_store, options)
    sweeper = cache._sweeper
    cache.stop_sweep()
    assert sweeper.join(timeout=1.0)

    cache.set("a", "1")
    time.sleep(0.3)

    # logically gone, physically still there
    assert len(_documents(cache, "a")) == 1
    with pytest.raises(NotFoundError):
        cache.get("a")


def test_live_entries_survive_sweeps(duckdb_store):
    options = CacheOptions(
        default_ttl=timedelta(seconds=30),
        sweep_interval=timedelta(milliseconds=20),
        start_sweep=True,
        collection_name="survivors",
    )
    with CacheStore(duckdb_store, options) as cache:
        cache.set("keep", {"v": 1})
        cache.set_with_ttl("drop", {"v": 2}, timedelta(milliseconds=10))
        time.sleep(0.15)

        assert cache.get("keep") == {"v": 1}
        assert [d["key"] for d in _documents(cache, "keep", "drop")] == ["keep"]
