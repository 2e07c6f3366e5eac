"""Global exception handlers for consistent error responses.

This module provides FastAPI exception handlers that intercept all errors
(domain, framework and unexpected) and return the same JSON shape:

    {"error": "<message>", "details": <optional context>}

Design:
- AppError subclasses → the status they carry (400, 401, 429, upstream/502)
- HTTPException (404, 405, ...) and request validation errors → same shape
- Unexpected Exception → generic 500 (safety net)
- Rate limit headers computed for the request are attached to error
  responses as well
"""

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tempmail_relay.core.errors import AppError, RateLimitAppError, UpstreamAppError
from tempmail_relay.core.logging import get_request_id
from tempmail_relay.core.rate_limit import RATE_LIMIT_HEADERS_STATE

logger = logging.getLogger(__name__)


def _error_response(
    request: Request,
    status_code: int,
    message: str,
    details=None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    content = {"error": message}
    if details is not None:
        content["details"] = details

    merged_headers = dict(getattr(request.state, RATE_LIMIT_HEADERS_STATE, None) or {})
    merged_headers.update(headers or {})

    return JSONResponse(
        status_code=status_code,
        content=content,
        headers=merged_headers or None,
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    The status code comes from the error itself:
    - ValidationAppError → 400 Bad Request
    - AuthenticationAppError → 401 Unauthorized
    - RateLimitAppError → 429 Too Many Requests (+ Retry-After)
    - UpstreamAppError → upstream status when known, else 502 Bad Gateway

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with ``error`` and, when present, ``details``.
    """
    status_code = exc.http_status
    log = logger.error if isinstance(exc, UpstreamAppError) and status_code >= 500 else logger.warning

    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": exc.details is not None,
            "request_path": request.url.path,
            "request_id": get_request_id(),
        },
    )

    # Rate limit bodies are stable: never carry details
    details = None if isinstance(exc, RateLimitAppError) else exc.details
    return _error_response(request, status_code, exc.message, details, exc.headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render framework HTTP errors (unknown route, wrong method) in our shape."""
    message = exc.detail if isinstance(exc.detail, str) else "HTTP error"
    details = None if isinstance(exc.detail, str) else exc.detail
    return _error_response(
        request,
        exc.status_code,
        message,
        details,
        getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request validation failures as 400 with the offending fields."""
    errors = [
        {
            "loc": list(error.get("loc", ())),
            "msg": error.get("msg"),
            "type": error.get("type"),
        }
        for error in exc.errors()
    ]
    logger.warning(
        "request_validation_failed",
        extra={
            "request_path": request.url.path,
            "error_count": len(errors),
            "request_id": get_request_id(),
        },
    )
    return _error_response(request, 400, "Invalid request", errors)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs detailed information for debugging while returning a generic
    message. No stack traces or exception text reach the client.
    Registered on the app as a last resort and also called by the request id
    middleware, which sits inside CORS.

    Args:
        request: FastAPI request object.
        exc: Exception instance (unexpected).

    Returns:
        JSONResponse 500 ``{"error": "Internal Server Error"}``.
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

    return _error_response(request, 500, "Internal Server Error")


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance.

    Example:
        >>> from fastapi import FastAPI
        >>> from tempmail_relay.core.exception_handlers import setup_exception_handlers
        >>> app = FastAPI()
        >>> setup_exception_handlers(app)
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(RequestValidationError)(validation_exception_handler)
    app.exception_handler(Exception)(general_exception_handler)
