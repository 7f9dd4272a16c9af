"""
models.py — Pydantic model for a cached entry and its document shape.

Every backend stores one document per key:

    {"key": str, "value": <JSON value>, "created_at": datetime, "expire_at": datetime}

Backends that cannot carry datetimes natively (Supabase REST) convert the
two timestamps to ISO-8601 strings on the way out and back.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


class Entry(BaseModel):
    """One cached key/value pair with its absolute expiry time."""

    model_config = ConfigDict(frozen=True)

    key: str
    value: Any = None
    created_at: datetime
    expire_at: datetime

    @field_validator("created_at", "expire_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        # Naive timestamps coming back from a store are UTC by convention
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "Entry":
        return cls(
            key=document["key"],
            value=document.get("value"),
            created_at=document["created_at"],
            expire_at=document["expire_at"],
        )

    def to_document(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "value": self.value,
            "created_at": self.created_at,
            "expire_at": self.expire_at,
        }
