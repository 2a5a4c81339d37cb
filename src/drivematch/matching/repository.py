"""In-process repository for matchings, used by tests and single-node setups."""
from __future__ import annotations

import copy
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

from .contracts import CallerContext, Matching, MatchingRepository, MatchingStatus
from .errors import NotFoundError
from .locks import KeyedLocks


@dataclass(slots=True)
class _MemoryLease:
    repository: InMemoryMatchingRepository
    ctx: CallerContext
    matching: Matching

    def save(self, matching: Matching) -> Matching:
        return self.repository.save(self.ctx, matching)

    def delete(self) -> None:
        self.repository.delete(self.ctx, self.matching.id)


class InMemoryMatchingRepository(MatchingRepository):
    """Thread-safe dictionary store that never hands out shared instances."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._rows: dict[str, Matching] = {}
        self._leases = KeyedLocks()

    def get(self, ctx: CallerContext, matching_id: str) -> Matching:
        with self._lock:
            row = self._rows.get(matching_id)
            if row is None:
                raise NotFoundError("matching", matching_id)
            return copy.deepcopy(row)

    def list(
        self,
        ctx: CallerContext,
        *,
        status: MatchingStatus | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Matching]:
        with self._lock:
            rows = [row for row in self._rows.values() if status is None or row.status is status]
            rows.sort(key=lambda row: row.created_at, reverse=True)
            end = None if limit is None else offset + limit
            return [copy.deepcopy(row) for row in rows[offset:end]]

    def count(self, ctx: CallerContext, *, status: MatchingStatus | None = None) -> int:
        with self._lock:
            return sum(1 for row in self._rows.values() if status is None or row.status is status)

    def save(self, ctx: CallerContext, matching: Matching) -> Matching:
        with self._lock:
            self._rows[matching.id] = copy.deepcopy(matching)
            return copy.deepcopy(matching)

    def delete(self, ctx: CallerContext, matching_id: str) -> None:
        with self._lock:
            if self._rows.pop(matching_id, None) is None:
                raise NotFoundError("matching", matching_id)

    @contextmanager
    def locked(self, ctx: CallerContext, matching_id: str) -> Iterator[_MemoryLease]:
        with self._leases.hold(matching_id):
            yield _MemoryLease(self, ctx, self.get(ctx, matching_id))

    def __len__(self) -> int:
        with self._lock:
            return len(self._rows)


__all__ = ["InMemoryMatchingRepository"]
