from __future__ import annotations

from datetime import datetime, timezone

import pytest

from drivematch.matching.contracts import Matching, MatchingStatus
from drivematch.matching.errors import (
    ArchivedImmutableError,
    InvalidTransitionError,
    LockedMatchingError,
)
from drivematch.matching.state_machine import MatchingStateMachine, Operation


def _matching(status: MatchingStatus = MatchingStatus.DRAFT, *, locked: bool = False) -> Matching:
    return Matching(
        id="m-1",
        name="batch",
        license_types=("B",),
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        created_by="admin",
        status=status,
        is_locked=locked,
    )


@pytest.mark.parametrize("operation", list(Operation))
def test_archived_rejects_every_operation(operation: Operation) -> None:
    machine = MatchingStateMachine()
    with pytest.raises(ArchivedImmutableError):
        machine.check(_matching(MatchingStatus.ARCHIVED, locked=True), operation)


def test_apply_requires_draft() -> None:
    with pytest.raises(InvalidTransitionError):
        MatchingStateMachine().check(_matching(MatchingStatus.APPLIED), Operation.APPLY)


def test_apply_rejected_while_locked() -> None:
    with pytest.raises(LockedMatchingError):
        MatchingStateMachine().check(_matching(locked=True), Operation.APPLY)


def test_archive_requires_applied_and_locked() -> None:
    machine = MatchingStateMachine()
    with pytest.raises(InvalidTransitionError):
        machine.check(_matching(MatchingStatus.DRAFT, locked=True), Operation.ARCHIVE)
    with pytest.raises(InvalidTransitionError) as exc:
        machine.check(_matching(MatchingStatus.APPLIED), Operation.ARCHIVE)
    assert "lock" in exc.value.message

    matching = _matching(MatchingStatus.APPLIED, locked=True)
    assert machine.transition(matching, Operation.ARCHIVE) is MatchingStatus.ARCHIVED
    assert matching.is_locked is True


@pytest.mark.parametrize("status", [MatchingStatus.DRAFT, MatchingStatus.APPLIED])
@pytest.mark.parametrize("operation", [Operation.MUTATE_ASSIGNMENTS, Operation.DELETE])
def test_lock_blocks_mutations(status: MatchingStatus, operation: Operation) -> None:
    machine = MatchingStateMachine()
    with pytest.raises(LockedMatchingError):
        machine.check(_matching(status, locked=True), operation)
    machine.check(_matching(status), operation)


def test_toggle_lock_flips_flag_and_keeps_status() -> None:
    machine = MatchingStateMachine()
    matching = _matching(MatchingStatus.APPLIED)
    machine.transition(matching, Operation.TOGGLE_LOCK)
    assert matching.is_locked is True
    machine.transition(matching, Operation.TOGGLE_LOCK)
    assert matching.is_locked is False
    assert matching.status is MatchingStatus.APPLIED


def test_update_details_allowed_while_locked() -> None:
    MatchingStateMachine().check(_matching(locked=True), Operation.UPDATE_DETAILS)
