"""
Exception taxonomy for the sync engine.
Every failure the engine reports degrades to one of these; none is fatal to the process.
"""

import logging
from typing import Any, Dict, Optional


logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base application exception."""
    code = "app_error"

    def __init__(self, message: str, details: Any = None, code: Optional[str] = None):
        self.message = message
        self.details = details
        if code:
            self.code = code
        super().__init__(self.message)


class ValidationError(AppException):
    """A required payload field is empty or zero. Raised before any remote call."""
    code = "validation_error"


class AuthorizationError(AppException):
    """The acting actor may not see or change the target record."""
    code = "forbidden"


class InvalidTransitionError(AuthorizationError):
    """A status transition was attempted on a terminal record."""
    code = "invalid_transition"


class RecordNotFoundError(AppException):
    """The referenced id is not in the local snapshot."""
    code = "not_found"


class RemoteStoreError(AppException):
    """A call to the remote store failed."""
    code = "remote_error"

    def __init__(self, message: str, status: Optional[int] = None, details: Any = None):
        self.status = status
        super().__init__(message, details=details)


class SessionClosedError(AppException):
    """The session context was torn down."""
    code = "session_closed"


def describe_error(exc: AppException) -> Dict[str, Any]:
    """Render an exception into the payload handed to UI collaborators."""
    if isinstance(exc, AuthorizationError):
        logger.warning(f"Denied: {exc.message}", extra={"code": exc.code, "details": exc.details})
    return {
        "error": {
            "code": exc.code,
            "message": exc.message,
            "details": exc.details,
        }
    }
