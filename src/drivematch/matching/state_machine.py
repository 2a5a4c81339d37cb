"""Lifecycle transitions and lock rules for matching batches."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .contracts import Matching, MatchingStatus
from .errors import ArchivedImmutableError, InvalidTransitionError, LockedMatchingError


class Operation(str, Enum):
    APPLY = "apply"
    ARCHIVE = "archive"
    TOGGLE_LOCK = "toggle_lock"
    MUTATE_ASSIGNMENTS = "mutate_assignments"
    DELETE = "delete"
    UPDATE_DETAILS = "update_details"


_TARGETS: dict[Operation, MatchingStatus] = {
    Operation.APPLY: MatchingStatus.APPLIED,
    Operation.ARCHIVE: MatchingStatus.ARCHIVED,
}
_REQUIRED_STATUS: dict[Operation, MatchingStatus] = {
    Operation.APPLY: MatchingStatus.DRAFT,
    Operation.ARCHIVE: MatchingStatus.APPLIED,
}
_BLOCKED_WHEN_LOCKED = frozenset(
    {Operation.APPLY, Operation.MUTATE_ASSIGNMENTS, Operation.DELETE}
)


@dataclass(frozen=True, slots=True)
class MatchingStateMachine:
    """Reject operations that the current status or lock flag does not allow.

    | from             | operation          | to       | precondition |
    |------------------|--------------------|----------|--------------|
    | draft            | apply              | applied  | unlocked     |
    | applied          | archive            | archived | locked       |
    | any non-archived | toggle_lock        | same     | none         |
    | draft or applied | mutate_assignments | same     | unlocked     |
    | draft or applied | delete             | removed  | unlocked     |
    """

    def check(self, matching: Matching, operation: Operation) -> None:
        if matching.status is MatchingStatus.ARCHIVED:
            raise ArchivedImmutableError(matching.id, operation.value)

        required = _REQUIRED_STATUS.get(operation)
        if required is not None and matching.status is not required:
            raise InvalidTransitionError(
                matching.id,
                operation.value,
                matching.status.value,
                f"requires status {required.value}",
            )

        if operation is Operation.ARCHIVE and not matching.is_locked:
            raise InvalidTransitionError(
                matching.id,
                operation.value,
                matching.status.value,
                "lock the matching before archiving",
            )

        if operation in _BLOCKED_WHEN_LOCKED and matching.is_locked:
            raise LockedMatchingError(matching.id, operation.value)

    def target_status(self, matching: Matching, operation: Operation) -> MatchingStatus:
        return _TARGETS.get(operation, matching.status)

    def transition(self, matching: Matching, operation: Operation) -> MatchingStatus:
        """Check ``operation`` and move ``matching`` to its resulting status."""

        self.check(matching, operation)
        matching.status = self.target_status(matching, operation)
        if operation is Operation.TOGGLE_LOCK:
            matching.is_locked = not matching.is_locked
        return matching.status


__all__ = ["MatchingStateMachine", "Operation"]
