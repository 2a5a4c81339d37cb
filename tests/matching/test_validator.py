from __future__ import annotations

from datetime import datetime, timezone

import pytest

from drivematch.matching.contracts import Assignment, Matching, MatchingStatus
from drivematch.matching.errors import (
    CapacityExceededError,
    IncompatibleLicenseError,
    MatchingValidationError,
)
from drivematch.matching.validator import (
    AssignmentValidator,
    check_capacity,
    check_license_compatibility,
    compute_effective_load,
)
from tests.factories import make_instructor

NOW = datetime(2024, 3, 20, 9, 0, tzinfo=timezone.utc)


def _matching(status: MatchingStatus, *pairs: tuple[str, str]) -> Matching:
    return Matching(
        id="m-1",
        name="batch",
        license_types=("B",),
        created_at=NOW,
        created_by="admin",
        status=status,
        assignments=[
            Assignment(student_id=sid, instructor_id=iid, license_type="B", matched_at=NOW)
            for sid, iid in pairs
        ],
    )


def test_license_rejected_when_instructor_lacks_class() -> None:
    with pytest.raises(IncompatibleLicenseError) as exc:
        check_license_compatibility("A2", ["B"], instructor_id="i-1")
    assert exc.value.error_code == "INCOMPATIBLE_LICENSE"
    assert exc.value.details["required"] == "A2"
    assert exc.value.details["available"] == ["B"]


def test_license_accepted_when_instructor_covers_class() -> None:
    check_license_compatibility("A2", ["A2", "B"])


def test_draft_load_adds_real_assignments() -> None:
    matching = _matching(MatchingStatus.DRAFT, ("s-1", "i-1"), ("s-2", "i-2"))
    assert compute_effective_load("i-1", matching, 3) == 4


def test_applied_load_ignores_real_assignments() -> None:
    matching = _matching(MatchingStatus.APPLIED, ("s-1", "i-1"), ("s-2", "i-1"))
    assert compute_effective_load("i-1", matching, 7) == 2


def test_load_excludes_moving_student() -> None:
    matching = _matching(MatchingStatus.DRAFT, ("s-1", "i-1"), ("s-2", "i-1"))
    assert compute_effective_load("i-1", matching, 0, exclude_student_id="s-1") == 1


def test_capacity_boundary() -> None:
    check_capacity(1, 2)
    with pytest.raises(CapacityExceededError) as exc:
        check_capacity(2, 2, instructor_id="i-1")
    assert "(2/2)" in exc.value.message


def test_capacity_requires_explicit_maximum() -> None:
    with pytest.raises(MatchingValidationError):
        check_capacity(0, None)


def test_draft_branch_rejects_when_real_plus_batch_reaches_max() -> None:
    instructor = make_instructor("i-1", max_students=2, real_count=1)
    matching = _matching(MatchingStatus.DRAFT, ("s-1", "i-1"))
    with pytest.raises(CapacityExceededError):
        AssignmentValidator().validate_placement("B", instructor, matching, default_max_students=10)


def test_applied_branch_accepts_same_numbers() -> None:
    instructor = make_instructor("i-1", max_students=2, real_count=1)
    matching = _matching(MatchingStatus.APPLIED, ("s-1", "i-1"))
    check = AssignmentValidator().validate_placement("B", instructor, matching, default_max_students=10)
    assert check.effective_load == 1
    assert check.load_after == 2
    assert check.max_students == 2


def test_missing_profile_maximum_falls_back_to_default() -> None:
    validator = AssignmentValidator()
    assert validator.resolve_max_students(make_instructor(max_students=None), 10) == 10
    assert validator.resolve_max_students(make_instructor(max_students=3), 10) == 3
