"""Core contracts for the matching lifecycle engine."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import ContextManager, Iterator, Literal, Protocol, Sequence, runtime_checkable

StudentStatus = Literal["active", "inactive", "completed", "failed"]


class MatchingStatus(str, Enum):
    """Closed set of lifecycle states; ``ARCHIVED`` is terminal."""

    DRAFT = "draft"
    APPLIED = "applied"
    ARCHIVED = "archived"


@dataclass(frozen=True, slots=True)
class CallerContext:
    """Explicit identity and credential forwarded to every collaborator call."""

    actor_id: str
    auth_token: str | None = None


@dataclass(slots=True)
class Assignment:
    """One student-to-instructor pairing inside a matching."""

    student_id: str
    instructor_id: str
    license_type: str
    matched_at: datetime
    is_transferred: bool = False
    previous_instructor_id: str | None = None
    transfer_reason: str | None = None


@dataclass(slots=True)
class Matching:
    """A saved batch of pairings carrying its own approval and lock lifecycle."""

    id: str
    name: str
    license_types: tuple[str, ...]
    created_at: datetime
    created_by: str
    description: str = ""
    status: MatchingStatus = MatchingStatus.DRAFT
    is_locked: bool = False
    assignments: list[Assignment] = field(default_factory=list)
    last_modified: datetime | None = None
    modified_by: str | None = None

    @property
    def total_students(self) -> int:
        return len(self.assignments)

    @property
    def total_instructors(self) -> int:
        return len(self.instructor_ids())

    @property
    def is_archived(self) -> bool:
        return self.status is MatchingStatus.ARCHIVED

    def instructor_ids(self) -> list[str]:
        """Distinct instructor ids in first-seen order."""

        seen: dict[str, None] = {}
        for assignment in self.assignments:
            seen.setdefault(assignment.instructor_id, None)
        return list(seen)

    def assignments_for(self, instructor_id: str) -> Iterator[Assignment]:
        return (item for item in self.assignments if item.instructor_id == instructor_id)

    def count_for_instructor(self, instructor_id: str, *, exclude_student_id: str | None = None) -> int:
        return sum(
            1
            for item in self.assignments
            if item.instructor_id == instructor_id and item.student_id != exclude_student_id
        )

    def find_assignment(self, student_id: str, instructor_id: str | None = None) -> Assignment | None:
        for item in self.assignments:
            if item.student_id != student_id:
                continue
            if instructor_id is None or item.instructor_id == instructor_id:
                return item
        return None

    def has_student(self, student_id: str) -> bool:
        return self.find_assignment(student_id) is not None

    def touch(self, *, actor_id: str, when: datetime) -> None:
        self.last_modified = when
        self.modified_by = actor_id


@dataclass(frozen=True, slots=True)
class Student:
    """Read-only view of an external student record."""

    id: str
    license_type: str
    status: StudentStatus = "active"
    full_name: str = ""


@dataclass(frozen=True, slots=True)
class Instructor:
    """Read-only view of an external instructor profile."""

    id: str
    license_types: frozenset[str]
    max_students_per_period: int | None = None
    current_real_assignment_count: int = 0
    full_name: str = ""


@dataclass(frozen=True, slots=True)
class AssignmentDraft:
    """Initial pairing supplied when a matching is created."""

    student_id: str
    instructor_id: str
    license_type: str


@dataclass(frozen=True, slots=True)
class MatchingDraft:
    """Creation input for a new matching batch."""

    name: str
    license_types: Sequence[str]
    assignments: Sequence[AssignmentDraft] = ()
    description: str = ""


class MatchingLease(Protocol):
    """Exclusive handle on one stored matching; writes share its transaction."""

    matching: Matching

    def save(self, matching: Matching) -> Matching:
        """Write the matching back and return the stored state."""

    def delete(self) -> None:
        """Remove the leased matching."""


@runtime_checkable
class MatchingRepository(Protocol):
    """Persistence contract for matching batches."""

    def get(self, ctx: CallerContext, matching_id: str) -> Matching:
        """Return the matching or raise ``NotFoundError``."""

    def list(
        self,
        ctx: CallerContext,
        *,
        status: MatchingStatus | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Matching]:
        """Return matchings newest first, optionally filtered by status."""

    def count(self, ctx: CallerContext, *, status: MatchingStatus | None = None) -> int:
        """Return the number of matchings for the filter."""

    def save(self, ctx: CallerContext, matching: Matching) -> Matching:
        """Durably store the matching and return the stored state."""

    def delete(self, ctx: CallerContext, matching_id: str) -> None:
        """Remove the matching or raise ``NotFoundError``."""

    def locked(self, ctx: CallerContext, matching_id: str) -> ContextManager[MatchingLease]:
        """Hold the matching exclusively until the block exits; raise ``NotFoundError`` if missing."""


class StudentDirectory(Protocol):
    """External student records consumed read-only."""

    def get(self, ctx: CallerContext, student_id: str) -> Student | None:
        """Return the student or ``None`` when unknown."""

    def list(self, ctx: CallerContext) -> Sequence[Student]:
        """Return every student visible to the caller."""


class InstructorDirectory(Protocol):
    """External instructor profiles consumed read-only."""

    def get(self, ctx: CallerContext, instructor_id: str) -> Instructor | None:
        """Return the instructor or ``None`` when unknown."""


class NotificationDispatcher(Protocol):
    """Transport-agnostic notification sender."""

    def send(self, ctx: CallerContext, student_id: str, title: str, message: str) -> bool:
        """Deliver one message; ``False`` signals a delivery failure."""


class StudentRecordWriter(Protocol):
    """Writes the applied instructor onto the external student record."""

    def assign_instructor(self, ctx: CallerContext, student_id: str, instructor_id: str) -> None:
        """Persist the pairing on the student side."""
