"""Transaction boundary used by the SQL matching repository."""
from __future__ import annotations

import logging
from contextlib import AbstractContextManager
from typing import Callable, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]


class MatchingUnitOfWork(AbstractContextManager):
    """One session per repository call; commit on clean exit, rollback otherwise.

    Commit failures are logged and re-raised as the original SQLAlchemy error.
    """

    def __init__(self, session_factory: SessionFactory, *, label: str = "matching") -> None:
        self._session_factory = session_factory
        self.label = label
        self._session: Session | None = None

    @property
    def session(self) -> Session:
        if self._session is None:
            raise RuntimeError("unit of work used outside of its context")
        return self._session

    def __enter__(self) -> MatchingUnitOfWork:
        self._session = self._session_factory()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        session = self.session
        try:
            if exc is not None:
                session.rollback()
                return False
            try:
                session.commit()
            except SQLAlchemyError:
                session.rollback()
                logger.error(
                    "matching_commit_failed",
                    extra={"code": "COMMIT_FAILED", "label": self.label},
                    exc_info=True,
                )
                raise
        finally:
            session.close()
            self._session = None
        return False


class UnitOfWorkFactory(Protocol):
    def __call__(self, label: str) -> MatchingUnitOfWork:
        """Return a fresh unit of work for the named repository call."""


__all__ = ["MatchingUnitOfWork", "SessionFactory", "UnitOfWorkFactory"]
