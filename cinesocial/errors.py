"""
Domain errors for cinesocial.

Error Taxonomy:
- RecordNotFound: referenced user, review or movie does not exist
- AlreadyExists: duplicate toggle-on for a (user, movie) or (user, review) key
- Unauthenticated: no caller identity for an operation that requires one
- InvalidRequest: malformed payload or forbidden request (e.g. self-follow)
- UpstreamUnavailable: metadata provider failed or timed out
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(Enum):
    """Classification of domain errors."""
    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    UNAUTHENTICATED = "unauthenticated"
    INVALID = "invalid"
    UPSTREAM = "upstream"


class ActivityError(Exception):
    """Base exception for all domain errors."""

    status_code = 500

    def __init__(self, message: str, kind: ErrorKind, context: Optional[Dict[str, Any]] = None):
        self.message = message
        self.kind = kind
        self.context = context or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"status": "error", "error": self.message, "error_type": self.kind.value}


class RecordNotFound(ActivityError):
    status_code = 404

    def __init__(self, message: str, **context):
        super().__init__(message, ErrorKind.NOT_FOUND, context)


class AlreadyExists(ActivityError):
    status_code = 400

    def __init__(self, message: str, **context):
        super().__init__(message, ErrorKind.ALREADY_EXISTS, context)


class Unauthenticated(ActivityError):
    status_code = 401

    def __init__(self, message: str = "Authentication required", **context):
        super().__init__(message, ErrorKind.UNAUTHENTICATED, context)


class InvalidRequest(ActivityError):
    status_code = 400

    def __init__(self, message: str, **context):
        super().__init__(message, ErrorKind.INVALID, context)


class UpstreamUnavailable(ActivityError):
    status_code = 502

    def __init__(self, message: str, original_error: Optional[Exception] = None, **context):
        self.original_error = original_error
        super().__init__(message, ErrorKind.UPSTREAM, context)
