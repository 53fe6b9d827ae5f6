"""
Error taxonomy shared by the callable endpoints.

Usage:
    from nichescout.errors import UpstreamPreconditionError

    raise UpstreamPreconditionError("Keepa search HTTP 429", status=429)
"""

from enum import Enum
from typing import Any, Optional


class ErrorCode(str, Enum):
    """Error codes returned to callers."""

    UNAUTHENTICATED = "UNAUTHENTICATED"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    FAILED_PRECONDITION = "FAILED_PRECONDITION"
    INTERNAL = "INTERNAL"


HTTP_STATUS = {
    ErrorCode.UNAUTHENTICATED: 401,
    ErrorCode.INVALID_ARGUMENT: 400,
    ErrorCode.FAILED_PRECONDITION: 400,
    ErrorCode.INTERNAL: 500,
}


class NicheScoutError(Exception):
    """Base exception with error code support."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: Optional[dict[str, Any]] = None,
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    @property
    def http_status(self) -> int:
        return HTTP_STATUS[self.code]

    def to_dict(self) -> dict[str, Any]:
        """Convert to the callable error body."""
        return {
            "status": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class UnauthenticatedError(NicheScoutError):
    """No caller identity."""

    def __init__(self, message: str = "Sign in required."):
        super().__init__(ErrorCode.UNAUTHENTICATED, message)


class InvalidArgumentError(NicheScoutError):
    """Malformed request body."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(ErrorCode.INVALID_ARGUMENT, message, details)


class UpstreamPreconditionError(NicheScoutError):
    """Keepa returned a non-success status or an embedded error object."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        error: Any = None,
    ):
        details = {}
        if status is not None:
            details["status"] = status
        if error is not None:
            details["error"] = error
        super().__init__(ErrorCode.FAILED_PRECONDITION, message, details)
        self.status = status
        self.error = error


class InternalError(NicheScoutError):
    """Anything else raised while serving a call."""

    def __init__(self, message: str = "Unexpected error"):
        super().__init__(ErrorCode.INTERNAL, message)
