"""Clock abstractions for deterministic audit timestamps."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Protocol


class Clock(Protocol):
    """Clock abstraction for deterministic tests."""

    def now(self) -> datetime:
        """Return a timezone-aware wall-clock timestamp."""


class SystemClock(Clock):
    """Default implementation backed by the process wall clock."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive timestamps returned by drivers such as SQLite."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


__all__ = ["Clock", "SystemClock", "ensure_utc"]
