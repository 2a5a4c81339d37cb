# -*- coding: utf-8 -*-
from __future__ import annotations

from fastapi import FastAPI, Response
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, CollectorRegistry, generate_latest

from drivematch import __version__
from drivematch.config import AppConfig, load_config
from drivematch.core.logging_config import setup_logging
from drivematch.matching.contracts import (
    InstructorDirectory,
    NotificationDispatcher,
    StudentDirectory,
    StudentRecordWriter,
)
from drivematch.matching.factories import build_matching_service
from drivematch.matching.service import MatchingService

from .error_handlers import install_error_handlers
from .routes import router


def create_app(service: MatchingService) -> FastAPI:
    app = FastAPI(title="Driving School Matching API", version=__version__)
    app.state.matching_service = service
    app.include_router(router)
    install_error_handlers(app)

    registry = service.meters.registry if service.meters is not None else REGISTRY

    @app.get("/metrics")
    def metrics() -> Response:
        return Response(content=generate_latest(registry), media_type=CONTENT_TYPE_LATEST)

    @app.get("/healthz")
    def healthz() -> dict[str, str]:
        return {"status": "ok"}

    return app


def create_application(
    *,
    instructors: InstructorDirectory,
    students: StudentDirectory | None = None,
    dispatcher: NotificationDispatcher | None = None,
    student_records: StudentRecordWriter | None = None,
    config: AppConfig | None = None,
    registry: CollectorRegistry | None = None,
) -> FastAPI:
    """Wire settings, logging and the SQL-backed service into a ready FastAPI app."""

    config = config or load_config()
    setup_logging(config.logging.level, config.logging.file)
    service = build_matching_service(
        config,
        instructors=instructors,
        students=students,
        dispatcher=dispatcher,
        student_records=student_records,
        registry=registry,
    )
    return create_app(service)


__all__ = ["create_app", "create_application"]
