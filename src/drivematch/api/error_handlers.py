# -*- coding: utf-8 -*-
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from drivematch.matching.errors import (
    ArchivedImmutableError,
    InvalidTransitionError,
    LockedMatchingError,
    MatchingError,
    NotFoundError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_TYPE: tuple[tuple[type[MatchingError], int], ...] = (
    (NotFoundError, 404),
    (InvalidTransitionError, 409),
    (LockedMatchingError, 409),
    (ArchivedImmutableError, 409),
)


def status_code_for(exc: MatchingError) -> int:
    for error_type, status_code in _STATUS_BY_TYPE:
        if isinstance(exc, error_type):
            return status_code
    return 422


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(MatchingError)
    async def handle_matching_error(request: Request, exc: MatchingError):  # type: ignore[unused-ignore]
        status_code = status_code_for(exc)
        logger.info(
            "matching_request_rejected",
            extra={"code": exc.error_code, "path": request.url.path, "status": status_code},
        )
        return JSONResponse(
            status_code=status_code,
            content={"error": exc.error_code, "message": exc.message, "details": exc.details},
        )


__all__ = ["install_error_handlers", "status_code_for"]
