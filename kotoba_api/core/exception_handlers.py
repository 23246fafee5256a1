"""Global exception handlers for consistent error responses.

This module provides FastAPI exception handlers that intercept all errors
(domain, request validation and unexpected) and return one JSON shape:

    {"code": ..., "message": ..., "status": ..., "retryAfter": ...}

Design:
- AppError subclasses → the variant's HTTP status
- Malformed request bodies → INVALID_INPUT 400
- Unexpected Exception → generic 500 (safety net)
- Request correlation travels in the X-Request-ID response header
"""

import logging
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from kotoba_api.core.errors import AppError, ErrorCode, RateLimitAppError
from kotoba_api.core.logging import get_request_id
from kotoba_api.core.rate_limit import build_rate_limit_headers

logger = logging.getLogger(__name__)


def build_error_body(
    code: str,
    message: str,
    status: int,
    retry_after: int | None = None,
) -> dict[str, Any]:
    """Build the wire representation of an error."""
    body: dict[str, Any] = {"code": code, "message": message, "status": status}
    if retry_after is not None:
        body["retryAfter"] = retry_after
    return body


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    Rate-limit errors additionally carry Retry-After and X-RateLimit-*
    headers. ``details`` are logged, never returned.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with the variant's status code.
    """
    status_code = exc.http_status
    retry_after = exc.retry_after if isinstance(exc, RateLimitAppError) else None

    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "error_details": exc.details,
            "request_path": request.url.path,
            "request_id": get_request_id(),
        },
    )

    headers: dict[str, str] = {}
    if isinstance(exc, RateLimitAppError):
        headers.update(build_rate_limit_headers(exc.decision))
        if retry_after is not None:
            headers["Retry-After"] = str(retry_after)

    return JSONResponse(
        status_code=status_code,
        content=build_error_body(exc.code, exc.message, status_code, retry_after),
        headers=headers or None,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Map malformed bodies (bad JSON, missing or mistyped fields) to INVALID_INPUT."""
    fields = sorted({".".join(str(p) for p in err.get("loc", ())[1:]) for err in exc.errors()})
    logger.info(
        "request_validation_failed",
        extra={
            "fields": fields,
            "request_path": request.url.path,
            "request_id": get_request_id(),
        },
    )
    return JSONResponse(
        status_code=400,
        content=build_error_body(
            ErrorCode.INVALID_INPUT,
            "Invalid request body.",
            400,
        ),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Catches any exception not handled by specific handlers.
    Logs detailed information for debugging while returning generic message.
    Prevents information leakage (no stack traces to client).

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

    return JSONResponse(
        status_code=500,
        content=build_error_body(
            ErrorCode.INTERNAL_ERROR,
            "An unexpected error occurred. Please try again later.",
            500,
        ),
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with FastAPI app.

    Must be called during app initialization, before route registration.

    Args:
        app: FastAPI application instance.
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(RequestValidationError)(request_validation_handler)
    app.exception_handler(Exception)(general_exception_handler)
