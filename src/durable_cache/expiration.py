"""
expiration.py — When an entry is dead, and when a new one will be.

Lazy checks on read and the background sweep both go through is_expired()
semantics: an entry whose expire_at equals "now" is already expired.

Usage:
    from durable_cache.expiration import compute_expire_at, is_expired, utcnow

    now = utcnow()
    expire_at = compute_expire_at(now, 30)          # 30 seconds
    expire_at = compute_expire_at(now, timedelta(minutes=5))
    is_expired(entry, utcnow())
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, Union

from durable_cache.models import Entry

Duration = Union[timedelta, int, float]
Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Timezone-aware current UTC time. The default clock."""
    return datetime.now(timezone.utc)


def as_timedelta(value: Duration) -> timedelta:
    """Normalise a duration given as a timedelta or as seconds."""
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"expected timedelta or seconds, got {type(value).__name__}")
    return timedelta(seconds=value)


def compute_expire_at(now: datetime, ttl: Duration) -> datetime:
    """
    Absolute expiry for an entry created at *now*.

    A zero or negative ttl is not rejected: the entry is simply born expired.
    """
    return now + as_timedelta(ttl)


def is_expired(entry: Entry, now: datetime) -> bool:
    return now >= entry.expire_at
