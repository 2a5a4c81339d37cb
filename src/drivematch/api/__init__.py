"""HTTP adapter exposing the matching service over FastAPI."""

from .app import create_app, create_application
from .schemas import status_from_wire, status_to_wire

__all__ = ["create_app", "create_application", "status_from_wire", "status_to_wire"]
