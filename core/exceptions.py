"""
Custom Exception Classes for the Portfolio API.

This module defines the error taxonomy shared by the authentication core and
every resource handler. Each exception carries a stable error code, an HTTP
status code and an optional `details` dictionary that is safe to return to
clients.

Key Components:
- `PortfolioAPIException`: The base class. Handlers raise subclasses of it and
  the exception handlers registered in `core.middleware` turn them into JSON
  error responses.
- Authentication errors: `MissingTokenError` and `InvalidTokenError` come from
  bearer-token resolution, `UnauthenticatedError` and `ForbiddenError` from the
  admin guard.
- Request errors: `ValidationError` (field violations), `NotFoundError` and
  `ConflictError` (uniqueness violations such as a duplicate slug).
- `InternalError`: opaque 500 used when an unexpected failure is mapped at the
  handler boundary. Its message never contains the underlying cause.
- `to_http_exception`: maps an application exception to FastAPI's
  `HTTPException` using the same status codes as the error handlers.
"""

from typing import Optional, Dict, Any, List
from fastapi import HTTPException


class PortfolioAPIException(Exception):
    """Base exception class for Portfolio API"""

    status_code = 500
    default_code = "PORTFOLIO_API_ERROR"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_code
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class MissingTokenError(PortfolioAPIException):
    """Raised when the Authorization header is absent or not a Bearer token"""

    status_code = 401
    default_code = "MISSING_TOKEN"

    def __init__(self, message: str = "No token provided"):
        super().__init__(message)


class InvalidTokenError(PortfolioAPIException):
    """Raised when the identity verifier rejects a token"""

    status_code = 401
    default_code = "INVALID_TOKEN"

    def __init__(self, reason: str = "Invalid or expired token"):
        super().__init__(reason, details={"reason": reason})


class UnauthenticatedError(PortfolioAPIException):
    """Raised when an operation needs a principal and none was resolved"""

    status_code = 401
    default_code = "UNAUTHENTICATED"

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class ForbiddenError(PortfolioAPIException):
    """Raised when the principal's role does not allow the operation"""

    status_code = 403
    default_code = "FORBIDDEN"

    def __init__(self, message: str = "Admin access required"):
        super().__init__(message)


class ValidationError(PortfolioAPIException):
    """Raised when input validation fails"""

    status_code = 400
    default_code = "VALIDATION_ERROR"

    def __init__(self, violations: List[Dict[str, str]], message: str = None):
        if message is None:
            fields = ", ".join(v["field"] for v in violations if v.get("field"))
            message = (
                f"Validation failed for: {fields}" if fields else "Validation failed"
            )
        super().__init__(message, details={"violations": violations})
        self.violations = violations


class NotFoundError(PortfolioAPIException):
    """Raised when a target entity does not exist"""

    status_code = 404
    default_code = "NOT_FOUND"

    def __init__(self, resource: str, identifier: Optional[str] = None):
        details = {"resource": resource}
        if identifier is not None:
            details["identifier"] = identifier
        super().__init__(f"{resource} not found", details=details)


class ConflictError(PortfolioAPIException):
    """Raised when a write would break a uniqueness invariant"""

    status_code = 409
    default_code = "CONFLICT"

    def __init__(self, message: str, status_code: Optional[int] = None, **details):
        super().__init__(message, details=details, status_code=status_code)


class RateLimitError(PortfolioAPIException):
    """Raised when a client exceeds the request ceiling"""

    status_code = 429
    default_code = "RATE_LIMIT_EXCEEDED"

    def __init__(self, retry_after: int):
        super().__init__(
            f"Too many requests. Try again in {retry_after} seconds",
            details={"retry_after": retry_after},
        )
        self.retry_after = retry_after


class InternalError(PortfolioAPIException):
    """Opaque server-side failure"""

    status_code = 500
    default_code = "INTERNAL_ERROR"

    def __init__(self, message: str = "An unexpected error occurred"):
        super().__init__(message)


def to_http_exception(exc: PortfolioAPIException) -> HTTPException:
    """Convert PortfolioAPIException to FastAPI HTTPException"""
    return HTTPException(
        status_code=exc.status_code,
        detail={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details,
        },
    )
