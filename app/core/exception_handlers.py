"""Global exception handlers for consistent error responses.

This module provides FastAPI exception handlers that intercept all errors
(domain and unexpected) and return the endpoint's JSON envelope
``{"success": false, "message": ...}`` with the proper HTTP status code.

Design:
- ValidationAppError and request body validation failures → 400
- RateLimitExceededError → 429 (with Retry-After / X-RateLimit-* headers)
- Other AppError subclasses and unexpected Exception → generic 500
- Correlation happens through the X-Request-ID response header and logs
"""

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.errors import AppError, RateLimitExceededError, ValidationAppError
from app.core.logging import get_request_id
from app.core.rate_limit import build_rate_limit_headers

logger = logging.getLogger(__name__)

INVALID_EMAIL_MESSAGE = "Invalid email format. Please provide a valid email address."
INTERNAL_ERROR_MESSAGE = "An error occurred while processing your request. Please try again."


def _error_response(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message},
        headers=headers or None,
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors.

    Routes domain errors to appropriate HTTP status codes:
    - ValidationAppError → 400 Bad Request (client fault)
    - RateLimitExceededError → 429 Too Many Requests
    - anything else → 500 with the generic message (internals stay in logs)

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with appropriate status code and message.
    """
    headers: dict[str, str] = {}
    if isinstance(exc, ValidationAppError):
        status_code = 400
        message = exc.message
    elif isinstance(exc, RateLimitExceededError):
        status_code = 429
        message = exc.message
        headers = build_rate_limit_headers(exc)
    else:
        status_code = 500
        message = INTERNAL_ERROR_MESSAGE

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
            "request_id": get_request_id(),
        },
    )

    return _error_response(status_code, message, headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Map body validation failures (bad JSON, missing or malformed email) to 400.

    Only the error locations and types are logged; input values may contain
    the submitted address.
    """
    logger.warning(
        "request_validation_failed",
        extra={
            "errors": [
                {"loc": list(err.get("loc", ())), "type": err.get("type")}
                for err in exc.errors()
            ],
            "request_path": request.url.path,
            "request_id": get_request_id(),
        },
    )
    return _error_response(400, INVALID_EMAIL_MESSAGE)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs detailed information for debugging while returning a generic
    message, so no stack traces or internal messages reach the client.

    Args:
        request: FastAPI request object.
        exc: Exception instance (unexpected).

    Returns:
        JSONResponse with generic error (no implementation details leaked).
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        },
    )

    return _error_response(500, INTERNAL_ERROR_MESSAGE)


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance.

    Example:
        >>> from fastapi import FastAPI
        >>> app = FastAPI()
        >>> setup_exception_handlers(app)
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(RequestValidationError)(request_validation_handler)
    app.exception_handler(Exception)(general_exception_handler)
