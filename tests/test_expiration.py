"""
tests/test_expiration.py — Tests for expiry computation and checks.
"""

from __future__ import annotations

from datetime import timedelta, timezone

import pytest

from durable_cache.expiration import as_timedelta, compute_expire_at, is_expired, utcnow
from durable_cache.models import Entry
from tests.conftest import T0


def _entry(expire_at):
    return Entry(key="k", value="v", created_at=T0, expire_at=expire_at)


class TestComputeExpireAt:
    def test_adds_timedelta(self):
        assert compute_expire_at(T0, timedelta(minutes=2)) == T0 + timedelta(minutes=2)

    def test_accepts_seconds(self):
        assert compute_expire_at(T0, 1.5) == T0 + timedelta(seconds=1.5)

    def test_zero_ttl_expires_immediately(self):
        expire_at = compute_expire_at(T0, 0)
        assert is_expired(_entry(expire_at), T0)

    def test_negative_ttl_is_not_rejected(self):
        assert compute_expire_at(T0, -5) == T0 - timedelta(seconds=5)


class TestIsExpired:
    def test_live_before_expiry(self):
        entry = _entry(T0 + timedelta(seconds=1))
        assert not is_expired(entry, T0)

    def test_expired_exactly_at_expire_at(self):
        entry = _entry(T0 + timedelta(seconds=1))
        assert is_expired(entry, T0 + timedelta(seconds=1))

    def test_expired_after_expire_at(self):
        entry = _entry(T0)
        assert is_expired(entry, T0 + timedelta(microseconds=1))


class TestHelpers:
    def test_as_timedelta_passthrough(self):
        delta = timedelta(seconds=3)
        assert as_timedelta(delta) is delta

    def test_as_timedelta_rejects_strings(self):
        with pytest.raises(TypeError):
            as_timedelta("10")

    def test_as_timedelta_rejects_bool(self):
        with pytest.raises(TypeError):
            as_timedelta(True)

    def test_utcnow_is_timezone_aware(self):
        assert utcnow().tzinfo is timezone.utc
