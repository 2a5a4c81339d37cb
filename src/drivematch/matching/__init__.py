"""Matching lifecycle engine: batches of student-to-instructor pairings."""

from .contracts import (
    Assignment,
    AssignmentDraft,
    CallerContext,
    Instructor,
    Matching,
    MatchingDraft,
    MatchingStatus,
    Student,
)
from .errors import (
    ArchivedImmutableError,
    CapacityExceededError,
    DuplicateStudentError,
    EmptyMatchingError,
    IncompatibleLicenseError,
    InvalidTransitionError,
    LockedMatchingError,
    MatchingError,
    MatchingValidationError,
    NotFoundError,
)
from .notifications import DeliveryFailure, NotificationReport
from .service import ApplyOutcome, InstructorLoad, MatchingPage, MatchingService

__all__ = [
    "ApplyOutcome",
    "ArchivedImmutableError",
    "Assignment",
    "AssignmentDraft",
    "CallerContext",
    "CapacityExceededError",
    "DeliveryFailure",
    "DuplicateStudentError",
    "EmptyMatchingError",
    "IncompatibleLicenseError",
    "Instructor",
    "InstructorLoad",
    "InvalidTransitionError",
    "LockedMatchingError",
    "Matching",
    "MatchingDraft",
    "MatchingError",
    "MatchingPage",
    "MatchingService",
    "MatchingStatus",
    "MatchingValidationError",
    "NotFoundError",
    "NotificationReport",
    "Student",
]
