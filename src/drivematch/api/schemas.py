# -*- coding: utf-8 -*-
"""Wire models for the matching HTTP adapter (camelCase on the wire)."""
from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from drivematch.matching.contracts import Matching, MatchingStatus, Student
from drivematch.matching.notifications import DeliveryFailure, NotificationReport
from drivematch.matching.service import ApplyOutcome, InstructorLoad, MatchingPage

WireStatus = Literal["PENDING", "APPLIED", "CANCELLED"]

_TO_WIRE: dict[MatchingStatus, WireStatus] = {
    MatchingStatus.DRAFT: "PENDING",
    MatchingStatus.APPLIED: "APPLIED",
    MatchingStatus.ARCHIVED: "CANCELLED",
}
_FROM_WIRE: dict[str, MatchingStatus] = {
    "PENDING": MatchingStatus.DRAFT,
    "APPLIED": MatchingStatus.APPLIED,
    "CANCELLED": MatchingStatus.ARCHIVED,
    "ARCHIVED": MatchingStatus.ARCHIVED,
}


def status_to_wire(status: MatchingStatus) -> WireStatus:
    return _TO_WIRE[status]


def status_from_wire(value: str) -> MatchingStatus:
    """Translate a transport status; unknown values raise ``ValueError``."""

    key = str(value or "").strip().upper()
    try:
        return _FROM_WIRE[key]
    except KeyError:
        raise ValueError(f"unknown matching status {value!r}") from None


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class _RequestModel(_WireModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="forbid",
    )


class AssignmentIn(_RequestModel):
    student_id: str = Field(min_length=1)
    instructor_id: str = Field(min_length=1)
    license_type: str = Field(min_length=1)


class CreateMatchingRequest(_RequestModel):
    name: str = ""
    description: str = ""
    license_types: list[str] = Field(min_length=1)
    assignments: list[AssignmentIn] = Field(default_factory=list)


class UpdateDetailsRequest(_RequestModel):
    name: str | None = None
    description: str | None = None
    license_types: list[str] | None = None


class SwapRequest(_RequestModel):
    student_id: str = Field(min_length=1)
    from_instructor_id: str = Field(min_length=1)
    to_instructor_id: str = Field(min_length=1)
    reason: str | None = None


class AddStudentRequest(_RequestModel):
    student_id: str = Field(min_length=1)
    instructor_id: str = Field(min_length=1)
    license_type: str = Field(min_length=1)


class NotifyRequest(_RequestModel):
    instructor_id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    message: str = Field(min_length=1)

    @field_validator("title", "message", mode="before")
    @classmethod
    def _reject_blank(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            raise ValueError("must not be blank")
        return value


class AssignmentOut(_WireModel):
    student_id: str
    instructor_id: str
    license_type: str
    matched_at: datetime
    is_transferred: bool
    previous_instructor_id: str | None = None
    transfer_reason: str | None = None


class MatchingOut(_WireModel):
    id: str
    name: str
    description: str
    license_types: list[str]
    status: WireStatus
    is_locked: bool
    total_students: int
    total_instructors: int
    created_at: datetime
    created_by: str
    last_modified: datetime | None = None
    modified_by: str | None = None
    assignments: list[AssignmentOut]

    @classmethod
    def from_domain(cls, matching: Matching) -> MatchingOut:
        return cls(
            id=matching.id,
            name=matching.name,
            description=matching.description,
            license_types=list(matching.license_types),
            status=status_to_wire(matching.status),
            is_locked=matching.is_locked,
            total_students=matching.total_students,
            total_instructors=matching.total_instructors,
            created_at=matching.created_at,
            created_by=matching.created_by,
            last_modified=matching.last_modified,
            modified_by=matching.modified_by,
            assignments=[
                AssignmentOut(
                    student_id=item.student_id,
                    instructor_id=item.instructor_id,
                    license_type=item.license_type,
                    matched_at=item.matched_at,
                    is_transferred=item.is_transferred,
                    previous_instructor_id=item.previous_instructor_id,
                    transfer_reason=item.transfer_reason,
                )
                for item in matching.assignments
            ],
        )


class MatchingPageOut(_WireModel):
    items: list[MatchingOut]
    total: int

    @classmethod
    def from_domain(cls, page: MatchingPage) -> MatchingPageOut:
        return cls(items=[MatchingOut.from_domain(item) for item in page.items], total=page.total)


class DeliveryFailureOut(_WireModel):
    instructor_id: str
    student_id: str | None = None
    error: str

    @classmethod
    def from_domain(cls, failure: DeliveryFailure) -> DeliveryFailureOut:
        return cls(
            instructor_id=failure.instructor_id,
            student_id=failure.student_id,
            error=failure.error,
        )


class ApplyOut(_WireModel):
    matching: MatchingOut
    failures: list[DeliveryFailureOut]

    @classmethod
    def from_domain(cls, outcome: ApplyOutcome) -> ApplyOut:
        return cls(
            matching=MatchingOut.from_domain(outcome.matching),
            failures=[DeliveryFailureOut.from_domain(item) for item in outcome.failures],
        )


class StudentOut(_WireModel):
    id: str
    license_type: str
    status: str
    full_name: str

    @classmethod
    def from_domain(cls, student: Student) -> StudentOut:
        return cls(
            id=student.id,
            license_type=student.license_type,
            status=student.status,
            full_name=student.full_name,
        )


class InstructorLoadOut(_WireModel):
    instructor_id: str
    batch_count: int
    effective_load: int
    max_students: int
    utilization: float
    is_full: bool

    @classmethod
    def from_domain(cls, load: InstructorLoad) -> InstructorLoadOut:
        return cls(
            instructor_id=load.instructor_id,
            batch_count=load.batch_count,
            effective_load=load.effective_load,
            max_students=load.max_students,
            utilization=load.utilization,
            is_full=load.is_full,
        )


class NotificationReportOut(_WireModel):
    instructor_id: str
    attempted: int
    delivered: int
    failures: list[DeliveryFailureOut]

    @classmethod
    def from_domain(cls, report: NotificationReport) -> NotificationReportOut:
        return cls(
            instructor_id=report.instructor_id,
            attempted=report.attempted,
            delivered=report.delivered,
            failures=[DeliveryFailureOut.from_domain(item) for item in report.failures],
        )


__all__ = [
    "AddStudentRequest",
    "ApplyOut",
    "CreateMatchingRequest",
    "InstructorLoadOut",
    "MatchingOut",
    "MatchingPageOut",
    "NotificationReportOut",
    "NotifyRequest",
    "StudentOut",
    "SwapRequest",
    "UpdateDetailsRequest",
    "status_from_wire",
    "status_to_wire",
]
