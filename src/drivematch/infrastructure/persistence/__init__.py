from .models import AssignmentModel, Base, MatchingModel
from .session import make_engine, make_session_factory

__all__ = [
    "AssignmentModel",
    "Base",
    "MatchingModel",
    "make_engine",
    "make_session_factory",
]
