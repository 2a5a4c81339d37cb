from __future__ import annotations

from collections.abc import Iterator

import pytest
from prometheus_client import CollectorRegistry

from drivematch.infrastructure.persistence import Base, make_engine, make_session_factory
from drivematch.matching.metrics import MatchingMeters
from drivematch.matching.notifications import ApplyNotificationEffect, InstructorNotifier
from drivematch.matching.repository import InMemoryMatchingRepository
from drivematch.matching.repository_sql import SqlAlchemyMatchingRepository
from drivematch.matching.service import MatchingService
from tests.factories import (
    FakeClock,
    InstructorBook,
    RecordingDispatcher,
    RecordingStudentRecords,
    StudentBook,
    make_instructor,
    make_student,
)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def registry() -> CollectorRegistry:
    return CollectorRegistry()


@pytest.fixture
def meters(registry: CollectorRegistry) -> MatchingMeters:
    return MatchingMeters(registry)


@pytest.fixture
def instructors() -> InstructorBook:
    return InstructorBook(
        [
            make_instructor("i-full", license_types=("B",), max_students=2, real_count=1),
            make_instructor("i-multi", license_types=("A2", "B"), max_students=10),
            make_instructor("i-b", license_types=("B",), max_students=None),
            make_instructor("i-c", license_types=("C",), max_students=5),
        ]
    )


@pytest.fixture
def students() -> StudentBook:
    return StudentBook(
        [
            make_student("s-1", license_type="B", full_name="Sara Karimi"),
            make_student("s-2", license_type="B", full_name="Omid Rahimi"),
            make_student("s-3", license_type="A2"),
            make_student("s-4", license_type="B", status="inactive"),
            make_student("s-5", license_type="C"),
            make_student("s-6", license_type="B"),
        ]
    )


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def student_records() -> RecordingStudentRecords:
    return RecordingStudentRecords()


@pytest.fixture
def repository() -> InMemoryMatchingRepository:
    return InMemoryMatchingRepository()


@pytest.fixture
def service(
    repository: InMemoryMatchingRepository,
    instructors: InstructorBook,
    students: StudentBook,
    clock: FakeClock,
    meters: MatchingMeters,
    dispatcher: RecordingDispatcher,
    student_records: RecordingStudentRecords,
) -> MatchingService:
    notifier = InstructorNotifier(dispatcher=dispatcher, students=students)
    effect = ApplyNotificationEffect(
        notifier=notifier,
        title="Instructor assigned",
        message="Dear {name}, your instructor is ready.",
        student_records=student_records,
    )
    return MatchingService(
        repository=repository,
        instructors=instructors,
        students=students,
        clock=clock,
        meters=meters,
        apply_effect=effect,
        notifier=notifier,
        default_max_students=10,
        notification_workers=2,
    )


@pytest.fixture
def sql_repository(tmp_path) -> Iterator[SqlAlchemyMatchingRepository]:
    engine = make_engine(f"sqlite+pysqlite:///{tmp_path / 'matching.sqlite'}")
    Base.metadata.create_all(engine)
    try:
        yield SqlAlchemyMatchingRepository(make_session_factory(engine))
    finally:
        engine.dispose()
