# -*- coding: utf-8 -*-
from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone
from typing import Iterable

from drivematch.matching.contracts import (
    AssignmentDraft,
    CallerContext,
    Instructor,
    MatchingDraft,
    Student,
    StudentStatus,
)

CTX = CallerContext(actor_id="admin-1", auth_token="token-1")


class FakeClock:
    """Deterministic UTC clock advanced manually by tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self._now = start or datetime(2024, 3, 20, 9, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._now

    def advance(self, seconds: float = 1.0) -> datetime:
        self._now += timedelta(seconds=seconds)
        return self._now


def make_instructor(
    instructor_id: str = "i-1",
    *,
    license_types: Iterable[str] = ("B",),
    max_students: int | None = 10,
    real_count: int = 0,
    full_name: str = "",
) -> Instructor:
    return Instructor(
        id=instructor_id,
        license_types=frozenset(license_types),
        max_students_per_period=max_students,
        current_real_assignment_count=real_count,
        full_name=full_name or f"Instructor {instructor_id}",
    )


def make_student(
    student_id: str = "s-1",
    *,
    license_type: str = "B",
    status: StudentStatus = "active",
    full_name: str = "",
) -> Student:
    return Student(
        id=student_id,
        license_type=license_type,
        status=status,
        full_name=full_name or f"Student {student_id}",
    )


def make_draft(
    *pairs: tuple[str, str, str],
    name: str = "Spring batch",
    license_types: Iterable[str] = ("B",),
) -> MatchingDraft:
    return MatchingDraft(
        name=name,
        license_types=tuple(license_types),
        assignments=[AssignmentDraft(student_id=s, instructor_id=i, license_type=lt) for s, i, lt in pairs],
    )


class InstructorBook:
    def __init__(self, instructors: Iterable[Instructor] = ()) -> None:
        self._rows = {item.id: item for item in instructors}
        self.calls: list[CallerContext] = []

    def add(self, instructor: Instructor) -> None:
        self._rows[instructor.id] = instructor

    def get(self, ctx: CallerContext, instructor_id: str) -> Instructor | None:
        self.calls.append(ctx)
        return self._rows.get(instructor_id)


class StudentBook:
    def __init__(self, students: Iterable[Student] = ()) -> None:
        self._rows = {item.id: item for item in students}

    def add(self, student: Student) -> None:
        self._rows[student.id] = student

    def get(self, ctx: CallerContext, student_id: str) -> Student | None:
        return self._rows.get(student_id)

    def list(self, ctx: CallerContext) -> list[Student]:
        return list(self._rows.values())


class RecordingDispatcher:
    """Collects sent messages; ids in ``fail_for`` return False, ``raise_for`` raise."""

    def __init__(self, *, fail_for: Iterable[str] = (), raise_for: Iterable[str] = ()) -> None:
        self.fail_for = set(fail_for)
        self.raise_for = set(raise_for)
        self.sent: list[tuple[str, str, str]] = []
        self._lock = threading.Lock()

    def send(self, ctx: CallerContext, student_id: str, title: str, message: str) -> bool:
        if student_id in self.raise_for:
            raise ConnectionError(f"push gateway down for {student_id}")
        with self._lock:
            self.sent.append((student_id, title, message))
        return student_id not in self.fail_for


class RecordingStudentRecords:
    def __init__(self, *, fail_for: Iterable[str] = ()) -> None:
        self.fail_for = set(fail_for)
        self.written: dict[str, str] = {}
        self._lock = threading.Lock()

    def assign_instructor(self, ctx: CallerContext, student_id: str, instructor_id: str) -> None:
        if student_id in self.fail_for:
            raise RuntimeError(f"student record {student_id} is read-only")
        with self._lock:
            self.written[student_id] = instructor_id
