"""Placement rules deciding whether a student may join an instructor.

Every function here is pure: it reads its arguments, raises a typed
``MatchingError`` on violation and never touches storage or audit fields.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from .contracts import Instructor, Matching, MatchingStatus
from .errors import CapacityExceededError, IncompatibleLicenseError, MatchingValidationError


def check_license_compatibility(
    student_license_type: str,
    instructor_license_types: Iterable[str],
    *,
    instructor_id: str | None = None,
) -> None:
    """Reject the pairing when the instructor cannot teach the student's class."""

    available = frozenset(instructor_license_types)
    if student_license_type not in available:
        raise IncompatibleLicenseError(student_license_type, available, instructor_id)


def compute_effective_load(
    instructor_id: str,
    matching: Matching,
    real_assignment_count: int,
    *,
    exclude_student_id: str | None = None,
) -> int:
    """Return the instructor's student count as relevant for capacity checks.

    An applied batch is already reflected in the system of record, so only
    the in-batch assignments count; adding the external figure would count
    those students twice. A draft batch is still provisional and its
    assignments come on top of the instructor's real load.

    ``exclude_student_id`` drops the assignment being moved by a swap so the
    load is measured after removal from the source instructor.
    """

    in_batch = matching.count_for_instructor(instructor_id, exclude_student_id=exclude_student_id)
    if matching.status is MatchingStatus.APPLIED:
        return in_batch
    return real_assignment_count + in_batch


def check_capacity(
    effective_load: int,
    max_students_per_period: int | None,
    *,
    instructor_id: str | None = None,
) -> None:
    """Reject when one more student would exceed ``max_students_per_period``."""

    if max_students_per_period is None:
        raise MatchingValidationError(
            "max_students_per_period must be supplied explicitly",
            instructor_id=instructor_id,
        )
    if effective_load >= max_students_per_period:
        raise CapacityExceededError(effective_load, max_students_per_period, instructor_id)


@dataclass(frozen=True, slots=True)
class PlacementCheck:
    """Outcome of a successful placement check, used for ``n/max`` messaging."""

    instructor_id: str
    effective_load: int
    max_students: int

    @property
    def load_after(self) -> int:
        return self.effective_load + 1


@dataclass(frozen=True, slots=True)
class AssignmentValidator:
    """Run license and capacity rules for one prospective placement."""

    def resolve_max_students(self, instructor: Instructor, default_max_students: int) -> int:
        if instructor.max_students_per_period:
            return instructor.max_students_per_period
        return default_max_students

    def validate_placement(
        self,
        license_type: str,
        instructor: Instructor,
        matching: Matching,
        *,
        default_max_students: int,
        exclude_student_id: str | None = None,
    ) -> PlacementCheck:
        check_license_compatibility(
            license_type,
            instructor.license_types,
            instructor_id=instructor.id,
        )
        effective_load = compute_effective_load(
            instructor.id,
            matching,
            instructor.current_real_assignment_count,
            exclude_student_id=exclude_student_id,
        )
        max_students = self.resolve_max_students(instructor, default_max_students)
        check_capacity(effective_load, max_students, instructor_id=instructor.id)
        return PlacementCheck(
            instructor_id=instructor.id,
            effective_load=effective_load,
            max_students=max_students,
        )


__all__ = [
    "AssignmentValidator",
    "PlacementCheck",
    "check_capacity",
    "check_license_compatibility",
    "compute_effective_load",
]
