# -*- coding: utf-8 -*-
from __future__ import annotations

from fastapi import APIRouter, Depends, Header, Query, Request, Response

from drivematch.matching.contracts import AssignmentDraft, CallerContext, MatchingDraft
from drivematch.matching.errors import MatchingValidationError
from drivematch.matching.service import MatchingService

from .schemas import (
    AddStudentRequest,
    ApplyOut,
    CreateMatchingRequest,
    InstructorLoadOut,
    MatchingOut,
    MatchingPageOut,
    NotificationReportOut,
    NotifyRequest,
    StudentOut,
    SwapRequest,
    UpdateDetailsRequest,
    status_from_wire,
)

router = APIRouter(prefix="/api/matching", tags=["matching"])


def get_service(request: Request) -> MatchingService:
    return request.app.state.matching_service


def get_caller_context(
    x_actor_id: str = Header(alias="X-Actor-Id", min_length=1),
    authorization: str | None = Header(default=None),
) -> CallerContext:
    token = None
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization[7:].strip() or None
    return CallerContext(actor_id=x_actor_id.strip(), auth_token=token)


@router.get("", response_model=MatchingPageOut)
def list_matchings(
    status: str | None = Query(default=None),
    limit: int | None = Query(default=None, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    ctx: CallerContext = Depends(get_caller_context),
    service: MatchingService = Depends(get_service),
):
    status_filter = None
    if status:
        try:
            status_filter = status_from_wire(status)
        except ValueError as exc:
            raise MatchingValidationError(str(exc), status=status) from exc
    page = service.list_matchings(ctx, status=status_filter, limit=limit, offset=offset)
    return MatchingPageOut.from_domain(page)


@router.post("", response_model=MatchingOut, status_code=201)
def create_matching(
    body: CreateMatchingRequest,
    ctx: CallerContext = Depends(get_caller_context),
    service: MatchingService = Depends(get_service),
):
    draft = MatchingDraft(
        name=body.name,
        description=body.description,
        license_types=body.license_types,
        assignments=[
            AssignmentDraft(
                student_id=item.student_id,
                instructor_id=item.instructor_id,
                license_type=item.license_type,
            )
            for item in body.assignments
        ],
    )
    return MatchingOut.from_domain(service.create(ctx, draft))


@router.get("/{matching_id}", response_model=MatchingOut)
def get_matching(
    matching_id: str,
    ctx: CallerContext = Depends(get_caller_context),
    service: MatchingService = Depends(get_service),
):
    return MatchingOut.from_domain(service.get(ctx, matching_id))


@router.patch("/{matching_id}", response_model=MatchingOut)
def update_matching(
    matching_id: str,
    body: UpdateDetailsRequest,
    ctx: CallerContext = Depends(get_caller_context),
    service: MatchingService = Depends(get_service),
):
    updated = service.update_details(
        ctx,
        matching_id,
        name=body.name,
        description=body.description,
        license_types=body.license_types,
    )
    return MatchingOut.from_domain(updated)


@router.delete("/{matching_id}", status_code=204)
def delete_matching(
    matching_id: str,
    ctx: CallerContext = Depends(get_caller_context),
    service: MatchingService = Depends(get_service),
):
    service.delete(ctx, matching_id)
    return Response(status_code=204)


@router.post("/{matching_id}/swap", response_model=MatchingOut)
def swap_student(
    matching_id: str,
    body: SwapRequest,
    ctx: CallerContext = Depends(get_caller_context),
    service: MatchingService = Depends(get_service),
):
    updated = service.swap_student(
        ctx,
        matching_id,
        body.student_id,
        body.from_instructor_id,
        body.to_instructor_id,
        reason=body.reason,
    )
    return MatchingOut.from_domain(updated)


@router.post("/{matching_id}/students", response_model=MatchingOut)
def add_student(
    matching_id: str,
    body: AddStudentRequest,
    ctx: CallerContext = Depends(get_caller_context),
    service: MatchingService = Depends(get_service),
):
    updated = service.add_student(
        ctx, matching_id, body.student_id, body.instructor_id, body.license_type
    )
    return MatchingOut.from_domain(updated)


@router.get("/{matching_id}/available-students", response_model=list[StudentOut])
def available_students(
    matching_id: str,
    ctx: CallerContext = Depends(get_caller_context),
    service: MatchingService = Depends(get_service),
):
    return [StudentOut.from_domain(item) for item in service.list_available_students(ctx, matching_id)]


@router.get("/{matching_id}/utilization", response_model=list[InstructorLoadOut])
def instructor_utilization(
    matching_id: str,
    ctx: CallerContext = Depends(get_caller_context),
    service: MatchingService = Depends(get_service),
):
    return [InstructorLoadOut.from_domain(item) for item in service.instructor_utilization(ctx, matching_id)]


@router.post("/{matching_id}/apply", response_model=ApplyOut)
def apply_matching(
    matching_id: str,
    ctx: CallerContext = Depends(get_caller_context),
    service: MatchingService = Depends(get_service),
):
    return ApplyOut.from_domain(service.apply(ctx, matching_id))


@router.patch("/{matching_id}/archive", response_model=MatchingOut)
def archive_matching(
    matching_id: str,
    ctx: CallerContext = Depends(get_caller_context),
    service: MatchingService = Depends(get_service),
):
    return MatchingOut.from_domain(service.archive(ctx, matching_id))


@router.post("/{matching_id}/lock", response_model=MatchingOut)
def toggle_lock(
    matching_id: str,
    ctx: CallerContext = Depends(get_caller_context),
    service: MatchingService = Depends(get_service),
):
    return MatchingOut.from_domain(service.toggle_lock(ctx, matching_id))


@router.post("/{matching_id}/notify", response_model=NotificationReportOut)
def notify_students(
    matching_id: str,
    body: NotifyRequest,
    ctx: CallerContext = Depends(get_caller_context),
    service: MatchingService = Depends(get_service),
):
    report = service.notify_instructor_students(
        ctx, matching_id, body.instructor_id, body.title, body.message
    )
    return NotificationReportOut.from_domain(report)


__all__ = ["get_caller_context", "get_service", "router"]
