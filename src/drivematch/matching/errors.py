# -*- coding: utf-8 -*-
"""Error hierarchy with machine-readable codes for the matching engine."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable


@dataclass(eq=False)
class MatchingError(Exception):
    """Base class for recoverable errors surfaced to callers."""

    error_code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.error_code}: {self.message}"


class NotFoundError(MatchingError):
    def __init__(self, resource: str, identifier: str, **extra: Any):
        details = {"resource": resource, "id": identifier, **extra}
        super().__init__("NOT_FOUND", f"{resource} {identifier} was not found", details)


class InvalidTransitionError(MatchingError):
    def __init__(self, matching_id: str, operation: str, status: str, reason: str):
        super().__init__(
            "INVALID_TRANSITION",
            f"Matching {matching_id} cannot {operation} while {status}: {reason}",
            {"matching_id": matching_id, "operation": operation, "status": status},
        )


class LockedMatchingError(MatchingError):
    def __init__(self, matching_id: str, operation: str):
        super().__init__(
            "LOCKED_MATCHING",
            f"Matching {matching_id} is locked; unlock it before {operation}",
            {"matching_id": matching_id, "operation": operation},
        )


class ArchivedImmutableError(MatchingError):
    def __init__(self, matching_id: str, operation: str):
        super().__init__(
            "ARCHIVED_IMMUTABLE",
            f"Matching {matching_id} is archived and cannot {operation}",
            {"matching_id": matching_id, "operation": operation},
        )


class IncompatibleLicenseError(MatchingError):
    def __init__(self, required: str, available: Iterable[str], instructor_id: str | None = None):
        available_sorted = sorted(available)
        listed = ", ".join(available_sorted) or "none"
        subject = f"Instructor {instructor_id}" if instructor_id else "Instructor"
        super().__init__(
            "INCOMPATIBLE_LICENSE",
            f"{subject} is not authorised for license class {required} (authorised: {listed})",
            {"required": required, "available": available_sorted, "instructor_id": instructor_id},
        )


class CapacityExceededError(MatchingError):
    def __init__(self, effective_load: int, max_students: int, instructor_id: str | None = None):
        subject = f"Instructor {instructor_id}" if instructor_id else "Instructor"
        super().__init__(
            "CAPACITY_EXCEEDED",
            f"{subject} has reached the maximum number of students ({effective_load}/{max_students})",
            {
                "effective_load": effective_load,
                "max_students": max_students,
                "instructor_id": instructor_id,
            },
        )


class DuplicateStudentError(MatchingError):
    def __init__(self, matching_id: str, student_id: str):
        super().__init__(
            "DUPLICATE_STUDENT",
            f"Student {student_id} is already part of matching {matching_id}",
            {"matching_id": matching_id, "student_id": student_id},
        )


class EmptyMatchingError(MatchingError):
    def __init__(self, matching_id: str):
        super().__init__(
            "EMPTY_MATCHING",
            f"Matching {matching_id} has no assignments to apply",
            {"matching_id": matching_id},
        )


class MatchingValidationError(MatchingError):
    def __init__(self, message: str, **details: Any):
        super().__init__("VALIDATION_ERROR", message, dict(details))


__all__ = [
    "ArchivedImmutableError",
    "CapacityExceededError",
    "DuplicateStudentError",
    "EmptyMatchingError",
    "IncompatibleLicenseError",
    "InvalidTransitionError",
    "LockedMatchingError",
    "MatchingError",
    "MatchingValidationError",
    "NotFoundError",
]
