"""Request correlation middleware.

Each request gets an id (the caller's ``X-Request-ID`` when present, else a
UUID4) that is bound to the logging context while the request is served and
echoed back on the response together with the handling time. One
``http.request`` access log line is written per request.

Unexpected exceptions are rendered here as the generic JSON 500 rather than
by Starlette's outermost error middleware, so the response still passes
through CORS and carries the request id.

Usage:
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request, Response

from tempmail_relay.core.config import settings
from tempmail_relay.core.exception_handlers import general_exception_handler
from tempmail_relay.core.logging import clear_request_id, set_request_id

logger = logging.getLogger(__name__)


async def request_id_middleware(request: Request, call_next) -> Response:
    header_name = settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())

    set_request_id(request_id)
    started = time.perf_counter()
    try:
        try:
            response: Response = await call_next(request)
        except Exception as exc:
            response = await general_exception_handler(request, exc)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            "http.request",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(elapsed_ms, 2),
            },
        )
    finally:
        clear_request_id()

    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{elapsed_ms:.2f}")
    return response
