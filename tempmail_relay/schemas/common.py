"""Pydantic schemas shared across routes."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Shape of every error body returned by the relay."""

    error: str = Field(..., description="Human-readable error message.")
    details: Any = Field(
        default=None,
        description="Upstream error body or validation context, when available.",
    )


class HealthResponse(BaseModel):
    """Liveness probe payload."""

    status: str = Field("ok", description="Always 'ok' while the process serves requests.")
    uptime: float = Field(..., description="Seconds since the application started.")
    timestamp: int = Field(..., description="Current UNIX time in milliseconds.")


class DeleteMessageResponse(BaseModel):
    ok: bool = True
