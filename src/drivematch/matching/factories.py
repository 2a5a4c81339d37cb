"""Factories wiring the matching service from application settings."""
from __future__ import annotations

import logging

from prometheus_client import CollectorRegistry

from drivematch.config import AppConfig
from drivematch.core.clock import Clock, SystemClock
from drivematch.infrastructure.persistence import Base, make_engine, make_session_factory

from .contracts import InstructorDirectory, NotificationDispatcher, StudentDirectory, StudentRecordWriter
from .metrics import MatchingMeters
from .notifications import ApplyNotificationEffect, InstructorNotifier
from .repository_sql import SqlAlchemyMatchingRepository
from .service import MatchingService

logger = logging.getLogger(__name__)


def build_matching_service(
    config: AppConfig,
    *,
    instructors: InstructorDirectory,
    students: StudentDirectory | None = None,
    dispatcher: NotificationDispatcher | None = None,
    student_records: StudentRecordWriter | None = None,
    registry: CollectorRegistry | None = None,
    clock: Clock | None = None,
    create_schema: bool = True,
) -> MatchingService:
    """Create a SQL-backed service; apply side effects need a dispatcher."""

    engine = make_engine(config.database.dsn, echo=config.database.echo)
    if create_schema:
        Base.metadata.create_all(engine)
    repository = SqlAlchemyMatchingRepository(make_session_factory(engine))

    notifier = None
    effect = None
    if dispatcher is not None:
        notifier = InstructorNotifier(dispatcher=dispatcher, students=students)
        effect = ApplyNotificationEffect(
            notifier=notifier,
            title=config.matching.apply_notification_title,
            message=config.matching.apply_notification_message,
            student_records=student_records,
        )

    logger.info(
        "matching_service_built",
        extra={
            "dialect": engine.dialect.name,
            "default_max_students": config.matching.default_max_students_per_period,
            "notifications": dispatcher is not None,
        },
    )
    return MatchingService(
        repository=repository,
        instructors=instructors,
        students=students,
        clock=clock or SystemClock(),
        meters=MatchingMeters(registry),
        apply_effect=effect,
        notifier=notifier,
        default_max_students=config.matching.default_max_students_per_period,
        notification_workers=config.matching.notification_workers,
    )


__all__ = ["build_matching_service"]
