# -*- coding: utf-8 -*-
"""Application service orchestrating matching lifecycle operations."""
from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Iterable, Iterator, Sequence
from uuid import uuid4

from drivematch.core.clock import Clock, SystemClock

from .contracts import (
    Assignment,
    CallerContext,
    Instructor,
    InstructorDirectory,
    Matching,
    MatchingDraft,
    MatchingRepository,
    MatchingStatus,
    Student,
    StudentDirectory,
)
from .errors import (
    DuplicateStudentError,
    EmptyMatchingError,
    MatchingError,
    MatchingValidationError,
    NotFoundError,
)
from .locks import KeyedLocks
from .metrics import MatchingMeters
from .notifications import ApplyEffect, DeliveryFailure, InstructorNotifier, NotificationReport, fan_out
from .state_machine import MatchingStateMachine, Operation
from .validator import AssignmentValidator, compute_effective_load

logger = logging.getLogger(__name__)


def _new_matching_id() -> str:
    return str(uuid4())


def _normalize_license_types(values: Iterable[str]) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for value in values:
        text = str(value).strip()
        if text:
            seen.setdefault(text, None)
    if not seen:
        raise MatchingValidationError("license_types must contain at least one license class")
    return tuple(seen)


@dataclass(frozen=True, slots=True)
class ApplyOutcome:
    """Applied matching plus every side effect that failed afterwards."""

    matching: Matching
    failures: tuple[DeliveryFailure, ...] = ()

    @property
    def fully_delivered(self) -> bool:
        return not self.failures


@dataclass(frozen=True, slots=True)
class MatchingPage:
    items: tuple[Matching, ...]
    total: int


@dataclass(frozen=True, slots=True)
class InstructorLoad:
    """Capacity snapshot for one instructor of a matching."""

    instructor_id: str
    batch_count: int
    effective_load: int
    max_students: int

    @property
    def utilization(self) -> float:
        if self.max_students <= 0:
            return 100.0
        return round(self.effective_load * 100 / self.max_students, 1)

    @property
    def is_full(self) -> bool:
        return self.effective_load >= self.max_students


@dataclass(slots=True)
class MatchingService:
    """Validate, mutate and persist matchings with exclusive access per id."""

    repository: MatchingRepository
    instructors: InstructorDirectory
    students: StudentDirectory | None = None
    clock: Clock = field(default_factory=SystemClock)
    meters: MatchingMeters | None = None
    apply_effect: ApplyEffect | None = None
    notifier: InstructorNotifier | None = None
    default_max_students: int = 10
    notification_workers: int = 4
    id_factory: Callable[[], str] = _new_matching_id
    validator: AssignmentValidator = field(default_factory=AssignmentValidator)
    state_machine: MatchingStateMachine = field(default_factory=MatchingStateMachine)
    locks: KeyedLocks = field(default_factory=KeyedLocks)

    @contextmanager
    def _track(self, operation: str, matching_id: str | None = None) -> Iterator[None]:
        started = time.perf_counter()
        try:
            yield
        except MatchingError as err:
            if self.meters is not None:
                self.meters.record_rejection(operation, err.error_code)
            logger.warning(
                "matching_operation_rejected",
                extra={
                    "code": err.error_code,
                    "operation": operation,
                    "matching_id": matching_id,
                    "reason": err.message,
                },
            )
            raise
        if self.meters is not None:
            self.meters.record_success(operation, time.perf_counter() - started)

    def _locked_update(
        self,
        ctx: CallerContext,
        matching_id: str,
        mutate: Callable[[Matching], None],
    ) -> Matching:
        with self.locks.hold(matching_id), self.repository.locked(ctx, matching_id) as lease:
            matching = lease.matching
            mutate(matching)
            matching.touch(actor_id=ctx.actor_id, when=self.clock.now())
            return lease.save(matching)

    def _instructor(self, ctx: CallerContext, instructor_id: str) -> Instructor:
        instructor = self.instructors.get(ctx, instructor_id)
        if instructor is None:
            raise NotFoundError("instructor", instructor_id)
        return instructor

    def create(self, ctx: CallerContext, draft: MatchingDraft) -> Matching:
        with self._track("create"):
            license_types = _normalize_license_types(draft.license_types)
            now = self.clock.now()
            assignments: list[Assignment] = []
            seen: set[str] = set()
            for item in draft.assignments:
                if not item.student_id.strip() or not item.instructor_id.strip():
                    raise MatchingValidationError("assignment ids must not be blank")
                if item.student_id in seen:
                    raise MatchingValidationError(
                        f"student {item.student_id} appears more than once",
                        student_id=item.student_id,
                    )
                if item.license_type not in license_types:
                    raise MatchingValidationError(
                        f"license type {item.license_type} is not covered by this matching",
                        student_id=item.student_id,
                        license_type=item.license_type,
                        license_types=list(license_types),
                    )
                seen.add(item.student_id)
                assignments.append(
                    Assignment(
                        student_id=item.student_id,
                        instructor_id=item.instructor_id,
                        license_type=item.license_type,
                        matched_at=now,
                    )
                )

            matching_id = self.id_factory()
            matching = Matching(
                id=matching_id,
                name=draft.name.strip() or f"Matching {matching_id[:8]}",
                description=draft.description,
                license_types=license_types,
                created_at=now,
                created_by=ctx.actor_id,
                assignments=assignments,
                last_modified=now,
                modified_by=ctx.actor_id,
            )
            with self.locks.hold(matching_id):
                saved = self.repository.save(ctx, matching)
            logger.info(
                "matching_created",
                extra={
                    "matching_id": saved.id,
                    "students": saved.total_students,
                    "instructors": saved.total_instructors,
                    "actor": ctx.actor_id,
                },
            )
            return saved

    def get(self, ctx: CallerContext, matching_id: str) -> Matching:
        return self.repository.get(ctx, matching_id)

    def list_matchings(
        self,
        ctx: CallerContext,
        *,
        status: MatchingStatus | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> MatchingPage:
        items = self.repository.list(ctx, status=status, limit=limit, offset=offset)
        total = self.repository.count(ctx, status=status)
        return MatchingPage(items=tuple(items), total=total)

    def swap_student(
        self,
        ctx: CallerContext,
        matching_id: str,
        student_id: str,
        from_instructor_id: str,
        to_instructor_id: str,
        *,
        reason: str | None = None,
    ) -> Matching:
        def mutate(matching: Matching) -> None:
            self.state_machine.check(matching, Operation.MUTATE_ASSIGNMENTS)
            assignment = matching.find_assignment(student_id, from_instructor_id)
            if assignment is None:
                raise NotFoundError(
                    "assignment",
                    student_id,
                    matching_id=matching.id,
                    instructor_id=from_instructor_id,
                )
            if from_instructor_id == to_instructor_id:
                raise MatchingValidationError(
                    "source and destination instructor are the same",
                    instructor_id=to_instructor_id,
                )
            instructor = self._instructor(ctx, to_instructor_id)
            check = self.validator.validate_placement(
                assignment.license_type,
                instructor,
                matching,
                default_max_students=self.default_max_students,
                exclude_student_id=student_id,
            )
            assignment.instructor_id = to_instructor_id
            assignment.is_transferred = True
            assignment.previous_instructor_id = from_instructor_id
            assignment.transfer_reason = reason
            assignment.matched_at = self.clock.now()
            logger.info(
                "student_swapped",
                extra={
                    "matching_id": matching.id,
                    "student_id": student_id,
                    "from_instructor": from_instructor_id,
                    "to_instructor": to_instructor_id,
                    "load": f"{check.load_after}/{check.max_students}",
                },
            )

        with self._track("swap_student", matching_id):
            return self._locked_update(ctx, matching_id, mutate)

    def add_student(
        self,
        ctx: CallerContext,
        matching_id: str,
        student_id: str,
        instructor_id: str,
        license_type: str,
    ) -> Matching:
        def mutate(matching: Matching) -> None:
            self.state_machine.check(matching, Operation.MUTATE_ASSIGNMENTS)
            if matching.has_student(student_id):
                raise DuplicateStudentError(matching.id, student_id)
            if license_type not in matching.license_types:
                raise MatchingValidationError(
                    f"license type {license_type} is not covered by this matching",
                    license_type=license_type,
                    license_types=list(matching.license_types),
                )
            instructor = self._instructor(ctx, instructor_id)
            check = self.validator.validate_placement(
                license_type,
                instructor,
                matching,
                default_max_students=self.default_max_students,
            )
            matching.assignments.append(
                Assignment(
                    student_id=student_id,
                    instructor_id=instructor_id,
                    license_type=license_type,
                    matched_at=self.clock.now(),
                )
            )
            logger.info(
                "student_added",
                extra={
                    "matching_id": matching.id,
                    "student_id": student_id,
                    "instructor_id": instructor_id,
                    "load": f"{check.load_after}/{check.max_students}",
                },
            )

        with self._track("add_student", matching_id):
            return self._locked_update(ctx, matching_id, mutate)

    def apply(self, ctx: CallerContext, matching_id: str) -> ApplyOutcome:
        def mutate(matching: Matching) -> None:
            self.state_machine.check(matching, Operation.APPLY)
            if not matching.assignments:
                raise EmptyMatchingError(matching.id)
            self.state_machine.transition(matching, Operation.APPLY)

        with self._track("apply", matching_id):
            applied = self._locked_update(ctx, matching_id, mutate)

        failures: list[DeliveryFailure] = []
        if self.apply_effect is not None:
            failures = fan_out(ctx, applied, self.apply_effect, max_workers=self.notification_workers)
        if self.meters is not None:
            self.meters.record_delivery_failure("apply", len(failures))
        log = logger.warning if failures else logger.info
        log(
            "matching_applied",
            extra={
                "matching_id": applied.id,
                "instructors": applied.total_instructors,
                "failures": len(failures),
            },
        )
        return ApplyOutcome(matching=applied, failures=tuple(failures))

    def archive(self, ctx: CallerContext, matching_id: str) -> Matching:
        with self._track("archive", matching_id):
            archived = self._locked_update(
                ctx,
                matching_id,
                lambda matching: self.state_machine.transition(matching, Operation.ARCHIVE),
            )
        logger.info("matching_archived", extra={"matching_id": matching_id})
        return archived

    def toggle_lock(self, ctx: CallerContext, matching_id: str) -> Matching:
        with self._track("toggle_lock", matching_id):
            updated = self._locked_update(
                ctx,
                matching_id,
                lambda matching: self.state_machine.transition(matching, Operation.TOGGLE_LOCK),
            )
        logger.info(
            "matching_lock_toggled",
            extra={"matching_id": matching_id, "is_locked": updated.is_locked},
        )
        return updated

    def delete(self, ctx: CallerContext, matching_id: str) -> None:
        with self._track("delete", matching_id):
            with self.locks.hold(matching_id), self.repository.locked(ctx, matching_id) as lease:
                self.state_machine.check(lease.matching, Operation.DELETE)
                lease.delete()
        logger.info("matching_deleted", extra={"matching_id": matching_id, "actor": ctx.actor_id})

    def update_details(
        self,
        ctx: CallerContext,
        matching_id: str,
        *,
        name: str | None = None,
        description: str | None = None,
        license_types: Sequence[str] | None = None,
    ) -> Matching:
        def mutate(matching: Matching) -> None:
            self.state_machine.check(matching, Operation.UPDATE_DETAILS)
            if name is not None:
                if not name.strip():
                    raise MatchingValidationError("name must not be blank")
                matching.name = name.strip()
            if description is not None:
                matching.description = description
            if license_types is not None:
                normalized = _normalize_license_types(license_types)
                if normalized != matching.license_types and matching.assignments:
                    raise MatchingValidationError(
                        "license_types can only change while the matching has no assignments",
                        matching_id=matching.id,
                    )
                matching.license_types = normalized

        with self._track("update_details", matching_id):
            return self._locked_update(ctx, matching_id, mutate)

    def list_available_students(
        self,
        ctx: CallerContext,
        matching_id: str,
        all_students: Iterable[Student] | None = None,
    ) -> list[Student]:
        matching = self.repository.get(ctx, matching_id)
        if all_students is None:
            if self.students is None:
                raise MatchingValidationError("no student directory configured; pass all_students")
            all_students = self.students.list(ctx)
        assigned = {item.student_id for item in matching.assignments}
        allowed = set(matching.license_types)
        return [
            student
            for student in all_students
            if student.status == "active"
            and student.license_type in allowed
            and student.id not in assigned
        ]

    def instructor_utilization(self, ctx: CallerContext, matching_id: str) -> list[InstructorLoad]:
        matching = self.repository.get(ctx, matching_id)
        loads: list[InstructorLoad] = []
        for instructor_id in matching.instructor_ids():
            instructor = self._instructor(ctx, instructor_id)
            loads.append(
                InstructorLoad(
                    instructor_id=instructor_id,
                    batch_count=matching.count_for_instructor(instructor_id),
                    effective_load=compute_effective_load(
                        instructor_id,
                        matching,
                        instructor.current_real_assignment_count,
                    ),
                    max_students=self.validator.resolve_max_students(
                        instructor, self.default_max_students
                    ),
                )
            )
        return loads

    def notify_instructor_students(
        self,
        ctx: CallerContext,
        matching_id: str,
        instructor_id: str,
        title: str,
        message: str,
    ) -> NotificationReport:
        if self.notifier is None:
            raise RuntimeError("notification dispatcher is not configured")
        with self._track("notify", matching_id):
            matching = self.repository.get(ctx, matching_id)
            if matching.count_for_instructor(instructor_id) == 0:
                raise MatchingValidationError(
                    f"instructor {instructor_id} has no students in this matching",
                    instructor_id=instructor_id,
                )
            report = self.notifier.notify(ctx, instructor_id, matching, title, message)
        if self.meters is not None:
            self.meters.record_delivery_failure("notify", len(report.failures))
        logger.info(
            "instructor_students_notified",
            extra={
                "matching_id": matching_id,
                "instructor_id": instructor_id,
                "delivered": report.delivered,
                "failed": len(report.failures),
            },
        )
        return report


__all__ = [
    "ApplyOutcome",
    "InstructorLoad",
    "MatchingPage",
    "MatchingService",
]
