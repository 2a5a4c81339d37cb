"""SQLAlchemy-backed matching repository."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from drivematch.core.clock import ensure_utc
from drivematch.infrastructure.persistence.models import AssignmentModel, MatchingModel

from .contracts import Assignment, CallerContext, Matching, MatchingRepository, MatchingStatus
from .errors import NotFoundError
from .uow import MatchingUnitOfWork, SessionFactory, UnitOfWorkFactory

logger = logging.getLogger(__name__)


def _to_domain(row: MatchingModel) -> Matching:
    return Matching(
        id=row.id,
        name=row.name,
        description=row.description or "",
        license_types=tuple(row.license_types or ()),
        status=MatchingStatus(row.status),
        is_locked=bool(row.is_locked),
        created_at=ensure_utc(row.created_at),
        created_by=row.created_by,
        last_modified=ensure_utc(row.last_modified) if row.last_modified else None,
        modified_by=row.modified_by,
        assignments=[
            Assignment(
                student_id=item.student_id,
                instructor_id=item.instructor_id,
                license_type=item.license_type,
                matched_at=ensure_utc(item.matched_at),
                is_transferred=bool(item.is_transferred),
                previous_instructor_id=item.previous_instructor_id,
                transfer_reason=item.transfer_reason,
            )
            for item in row.assignments
        ],
    )


def _copy_header(row: MatchingModel, matching: Matching) -> None:
    row.name = matching.name
    row.description = matching.description
    row.license_types = list(matching.license_types)
    row.status = matching.status.value
    row.is_locked = matching.is_locked
    row.total_students = matching.total_students
    row.total_instructors = matching.total_instructors
    row.created_at = matching.created_at
    row.created_by = matching.created_by
    row.last_modified = matching.last_modified
    row.modified_by = matching.modified_by


def _copy_assignment(row: AssignmentModel, assignment: Assignment, position: int) -> None:
    row.position = position
    row.instructor_id = assignment.instructor_id
    row.license_type = assignment.license_type
    row.matched_at = assignment.matched_at
    row.is_transferred = assignment.is_transferred
    row.previous_instructor_id = assignment.previous_instructor_id
    row.transfer_reason = assignment.transfer_reason


def _write(session: Session, row: MatchingModel, matching: Matching) -> Matching:
    _copy_header(row, matching)

    existing = {item.student_id: item for item in row.assignments}
    wanted = {item.student_id for item in matching.assignments}
    for student_id, item in existing.items():
        if student_id not in wanted:
            row.assignments.remove(item)
    session.flush()

    for position, assignment in enumerate(matching.assignments):
        item = existing.get(assignment.student_id)
        if item is None:
            item = AssignmentModel(student_id=assignment.student_id)
            row.assignments.append(item)
        _copy_assignment(item, assignment, position)
    session.flush()
    logger.debug(
        "matching_persisted",
        extra={"matching_id": matching.id, "assignments": matching.total_students},
    )
    session.refresh(row)
    return _to_domain(row)


@dataclass(slots=True)
class _SqlLease:
    session: Session
    row: MatchingModel
    matching: Matching

    def save(self, matching: Matching) -> Matching:
        return _write(self.session, self.row, matching)

    def delete(self) -> None:
        self.session.delete(self.row)
        self.session.flush()


class SqlAlchemyMatchingRepository(MatchingRepository):
    """Persist matchings and their assignments inside one transaction per call."""

    def __init__(self, session_factory: SessionFactory, *, uow_factory: UnitOfWorkFactory | None = None) -> None:
        self._session_factory = session_factory
        self._uow_factory = uow_factory or (
            lambda label: MatchingUnitOfWork(session_factory, label=label)
        )

    def _load(self, session: Session, matching_id: str, *, for_update: bool = False) -> MatchingModel | None:
        stmt = (
            select(MatchingModel)
            .where(MatchingModel.id == matching_id)
            .options(selectinload(MatchingModel.assignments))
        )
        if for_update:
            stmt = stmt.with_for_update()
        return session.execute(stmt).scalar_one_or_none()

    def get(self, ctx: CallerContext, matching_id: str) -> Matching:
        with self._uow_factory("get") as uow:
            row = self._load(uow.session, matching_id)
            if row is None:
                raise NotFoundError("matching", matching_id)
            return _to_domain(row)

    def list(
        self,
        ctx: CallerContext,
        *,
        status: MatchingStatus | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Matching]:
        stmt = select(MatchingModel).options(selectinload(MatchingModel.assignments))
        if status is not None:
            stmt = stmt.where(MatchingModel.status == status.value)
        stmt = stmt.order_by(MatchingModel.created_at.desc(), MatchingModel.id).offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        with self._uow_factory("list") as uow:
            rows = uow.session.execute(stmt).scalars().all()
            return [_to_domain(row) for row in rows]

    def count(self, ctx: CallerContext, *, status: MatchingStatus | None = None) -> int:
        stmt = select(func.count()).select_from(MatchingModel)
        if status is not None:
            stmt = stmt.where(MatchingModel.status == status.value)
        with self._uow_factory("count") as uow:
            return int(uow.session.execute(stmt).scalar_one())

    def save(self, ctx: CallerContext, matching: Matching) -> Matching:
        with self._uow_factory("save") as uow:
            session = uow.session
            row = self._load(session, matching.id, for_update=True)
            if row is None:
                row = MatchingModel(id=matching.id)
                session.add(row)
            return _write(session, row, matching)

    def delete(self, ctx: CallerContext, matching_id: str) -> None:
        with self._uow_factory("delete") as uow:
            row = self._load(uow.session, matching_id, for_update=True)
            if row is None:
                raise NotFoundError("matching", matching_id)
            uow.session.delete(row)

    @contextmanager
    def locked(self, ctx: CallerContext, matching_id: str) -> Iterator[_SqlLease]:
        """Load with ``FOR UPDATE`` and keep the transaction open until the block exits."""

        with self._uow_factory("locked") as uow:
            row = self._load(uow.session, matching_id, for_update=True)
            if row is None:
                raise NotFoundError("matching", matching_id)
            yield _SqlLease(uow.session, row, _to_domain(row))


__all__ = ["SqlAlchemyMatchingRepository"]
