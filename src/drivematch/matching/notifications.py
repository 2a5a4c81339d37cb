"""Post-apply side effects: student record updates and instructor notifications."""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Protocol, Sequence

from .contracts import (
    CallerContext,
    Matching,
    NotificationDispatcher,
    StudentDirectory,
    StudentRecordWriter,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DeliveryFailure:
    """One side effect that did not go through."""

    instructor_id: str
    student_id: str | None
    error: str


@dataclass(frozen=True, slots=True)
class NotificationReport:
    instructor_id: str
    attempted: int
    failures: tuple[DeliveryFailure, ...]

    @property
    def delivered(self) -> int:
        return self.attempted - len(self.failures)


class ApplyEffect(Protocol):
    """Per-instructor callback invoked after a matching is applied."""

    def __call__(self, ctx: CallerContext, instructor_id: str, matching: Matching) -> Sequence[DeliveryFailure]:
        """Run side effects for one instructor and return per-student failures."""


def _failure_text(exc: BaseException) -> str:
    return f"{type(exc).__name__}: {exc}"


@dataclass(slots=True)
class InstructorNotifier:
    """Send one message to every student of an instructor within a matching."""

    dispatcher: NotificationDispatcher
    students: StudentDirectory | None = None

    def _student_name(self, ctx: CallerContext, student_id: str) -> str:
        if self.students is None:
            return student_id
        try:
            student = self.students.get(ctx, student_id)
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning(
                "student_lookup_failed",
                extra={"student_id": student_id, "error": _failure_text(exc)},
            )
            return student_id
        if student is None or not student.full_name:
            return student_id
        return student.full_name

    def notify(
        self,
        ctx: CallerContext,
        instructor_id: str,
        matching: Matching,
        title: str,
        message: str,
    ) -> NotificationReport:
        failures: list[DeliveryFailure] = []
        student_ids = [item.student_id for item in matching.assignments_for(instructor_id)]
        for student_id in student_ids:
            body = message.replace("{name}", self._student_name(ctx, student_id))
            try:
                delivered = self.dispatcher.send(ctx, student_id, title, body)
            except Exception as exc:  # pylint: disable=broad-except
                error = _failure_text(exc)
            else:
                if delivered is not False:
                    continue
                error = "dispatcher reported failure"
            failures.append(DeliveryFailure(instructor_id, student_id, error))
            logger.warning(
                "notification_failed",
                extra={
                    "code": "NOTIFY_FAILED",
                    "matching_id": matching.id,
                    "instructor_id": instructor_id,
                    "student_id": student_id,
                    "error": error,
                },
            )
        return NotificationReport(
            instructor_id=instructor_id,
            attempted=len(student_ids),
            failures=tuple(failures),
        )


@dataclass(slots=True)
class ApplyNotificationEffect:
    """Default apply effect: write the instructor onto each student, then notify."""

    notifier: InstructorNotifier
    title: str
    message: str
    student_records: StudentRecordWriter | None = None

    def __call__(self, ctx: CallerContext, instructor_id: str, matching: Matching) -> list[DeliveryFailure]:
        failures: list[DeliveryFailure] = []
        if self.student_records is not None:
            for assignment in matching.assignments_for(instructor_id):
                try:
                    self.student_records.assign_instructor(ctx, assignment.student_id, instructor_id)
                except Exception as exc:  # pylint: disable=broad-except
                    failures.append(
                        DeliveryFailure(instructor_id, assignment.student_id, _failure_text(exc))
                    )
                    logger.warning(
                        "student_record_update_failed",
                        extra={
                            "code": "RECORD_UPDATE_FAILED",
                            "matching_id": matching.id,
                            "student_id": assignment.student_id,
                        },
                    )
        report = self.notifier.notify(ctx, instructor_id, matching, self.title, self.message)
        failures.extend(report.failures)
        return failures


def fan_out(
    ctx: CallerContext,
    matching: Matching,
    effect: ApplyEffect,
    *,
    max_workers: int = 4,
) -> list[DeliveryFailure]:
    """Run ``effect`` once per distinct instructor; failures never stop the others."""

    instructor_ids = matching.instructor_ids()
    if not instructor_ids:
        return []

    def _run(instructor_id: str) -> list[DeliveryFailure]:
        try:
            return list(effect(ctx, instructor_id, matching))
        except Exception as exc:  # pylint: disable=broad-except
            logger.error(
                "apply_effect_failed",
                extra={
                    "code": "APPLY_EFFECT_FAILED",
                    "matching_id": matching.id,
                    "instructor_id": instructor_id,
                },
                exc_info=True,
            )
            return [DeliveryFailure(instructor_id, None, _failure_text(exc))]

    workers = max(1, min(max_workers, len(instructor_ids)))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="matching-apply") as pool:
        results = list(pool.map(_run, instructor_ids))
    return [failure for batch in results for failure in batch]


__all__ = [
    "ApplyEffect",
    "ApplyNotificationEffect",
    "DeliveryFailure",
    "InstructorNotifier",
    "NotificationReport",
    "fan_out",
]
