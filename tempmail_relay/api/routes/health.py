from __future__ import annotations

import time

from fastapi import APIRouter, Request

from tempmail_relay.schemas.common import HealthResponse

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
def health_check(request: Request) -> HealthResponse:
    """Health check endpoint.

    Not rate limited and makes no upstream call. Used by load balancers and
    monitoring systems to determine whether the process is serving.

    Returns:
        HealthResponse: status "ok", uptime in seconds and the current
            timestamp in milliseconds.
    """

    started_at = request.app.state.started_at
    return HealthResponse(
        status="ok",
        uptime=round(time.monotonic() - started_at, 3),
        timestamp=int(time.time() * 1000),
    )
