"""
Application Middleware for the Portfolio API.

Cross-cutting request handling shared by every route.

Key Components:
- `CorrelationMiddleware`: assigns each request a correlation id (taken from
  `X-Correlation-ID` / `X-Request-ID` when the caller sends one), publishes it
  to the logging context and echoes it in the response headers.
- `ErrorHandlingMiddleware`: last line of defense. Any exception that escaped
  the route is logged with its traceback and answered with an opaque 500.
- `PerformanceMiddleware`: logs request start and completion, adds
  `X-Process-Time` and warns about slow requests.
- `register_exception_handlers`: maps `PortfolioAPIException` subclasses and
  FastAPI request validation errors onto the JSON error envelope:

      {"error": {"type", "code", "message", "details", "correlation_id"}}
"""

import time
import uuid
from typing import Any, Callable, Dict, Optional

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from .exceptions import (
    InternalError,
    PortfolioAPIException,
    ValidationError,
    to_http_exception,
)
from .logging_config import get_correlation_id, get_logger, set_correlation_id
from .validation import violations_from_errors

logger = get_logger("core.middleware")

SLOW_REQUEST_SECONDS = 1.0


def create_error_response(
    error_type: str,
    error_code: str,
    message: str,
    status_code: int = 400,
    details: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """Create standardized error response"""
    error_data = {
        "error": {
            "type": error_type,
            "code": error_code,
            "message": message,
            "details": details or {},
            "correlation_id": get_correlation_id(),
        }
    }
    return JSONResponse(status_code=status_code, content=error_data, headers=headers)


class CorrelationMiddleware(BaseHTTPMiddleware):
    """Middleware to add correlation IDs to requests"""

    def __init__(self, app: ASGIApp):
        super().__init__(app)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = (
            request.headers.get("X-Correlation-ID")
            or request.headers.get("X-Request-ID")
            or str(uuid.uuid4())
        )
        set_correlation_id(correlation_id)

        response = await call_next(request)
        response.headers["X-Correlation-ID"] = correlation_id
        return response


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Middleware turning unexpected exceptions into opaque 500 responses"""

    def __init__(self, app: ASGIApp):
        super().__init__(app)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(
                f"Unexpected error: {str(e)}",
                extra={
                    "error_type": type(e).__name__,
                    "path": request.url.path,
                    "method": request.method,
                },
                exc_info=True,
            )
            error = InternalError()
            return create_error_response(
                "InternalServerError", error.error_code, error.message, 500
            )


class PerformanceMiddleware(BaseHTTPMiddleware):
    """Middleware for request logging and timing"""

    def __init__(self, app: ASGIApp):
        super().__init__(app)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()

        logger.info(
            f"Request started: {request.method} {request.url.path}",
            extra={
                "method": request.method,
                "path": request.url.path,
                "client_ip": request.client.host if request.client else None,
            },
        )

        response = await call_next(request)

        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(round(process_time * 1000, 2))

        logger.info(
            f"Request completed: {request.method} {request.url.path} - {response.status_code}",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "process_time_ms": round(process_time * 1000, 2),
            },
        )

        if process_time > SLOW_REQUEST_SECONDS:
            logger.warning(
                f"Slow request detected: {request.method} {request.url.path}",
                extra={"process_time_ms": round(process_time * 1000, 2)},
            )

        return response


async def handle_application_error(
    request: Request, exc: PortfolioAPIException
) -> JSONResponse:
    http_exc = to_http_exception(exc)
    log = logger.error if http_exc.status_code >= 500 else logger.info
    log(
        f"Application error: {exc.message}",
        extra={
            "error_code": exc.error_code,
            "status_code": http_exc.status_code,
            "path": request.url.path,
            "method": request.method,
        },
    )

    headers = None
    if http_exc.status_code == 401:
        headers = {"WWW-Authenticate": "Bearer"}

    return create_error_response(
        type(exc).__name__,
        exc.error_code,
        exc.message,
        http_exc.status_code,
        details=exc.details,
        headers=headers,
    )


async def handle_request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return await handle_application_error(
        request, ValidationError(violations_from_errors(exc.errors()))
    )


async def handle_http_exception(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Routing errors (unknown path, wrong method) in the same envelope"""
    code = "NOT_FOUND" if exc.status_code == 404 else "HTTP_ERROR"
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return create_error_response(
        "HTTPException",
        code,
        message,
        exc.status_code,
        headers=getattr(exc, "headers", None),
    )


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(PortfolioAPIException, handle_application_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
