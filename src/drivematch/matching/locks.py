"""Per-matching mutual exclusion for read-modify-write operations."""
from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator


@dataclass(slots=True)
class _Entry:
    lock: threading.Lock = field(default_factory=threading.Lock)
    holders: int = 0


class KeyedLocks:
    """Registry of locks keyed by matching id.

    Entries are reference counted and dropped once no thread holds or waits
    on them, so the registry does not grow with the number of matchings ever
    touched. Distinct keys never contend.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._entries: dict[str, _Entry] = {}

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            entry.holders += 1
        entry.lock.acquire()
        try:
            yield
        finally:
            entry.lock.release()
            with self._guard:
                entry.holders -= 1
                if entry.holders == 0:
                    self._entries.pop(key, None)

    def active_keys(self) -> frozenset[str]:
        with self._guard:
            return frozenset(self._entries)


__all__ = ["KeyedLocks"]
