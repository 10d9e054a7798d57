"""HTTP API."""

from .app import MISSING_SESSION_FIELDS, create_app

__all__ = ["create_app", "MISSING_SESSION_FIELDS"]
