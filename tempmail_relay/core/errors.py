"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.

Every error carries the HTTP status it maps to, so the global exception
handler can render ``{"error": ..., "details": ...}`` without knowing which
layer raised it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code (logged, not returned).
        message: Human-readable error message returned as ``error``.
        details: Optional payload returned to the client as ``details``.
    """

    code: str
    message: str
    details: Any = None

    status_code: ClassVar[int] = 400

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)

    @property
    def http_status(self) -> int:
        return self.status_code

    @property
    def headers(self) -> dict[str, str] | None:
        return None


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class AuthenticationAppError(AppError):
    """Raised when the bearer credential is missing or malformed."""

    status_code: ClassVar[int] = 401


@dataclass
class RateLimitAppError(AppError):
    """Raised when a client exceeds its rate limit window.

    Attributes:
        retry_after: Seconds until the client's window resets.
        response_headers: Headers (RateLimit-*, Retry-After) to attach.
    """

    retry_after: int = 0
    response_headers: dict[str, str] = field(default_factory=dict)

    status_code: ClassVar[int] = 429

    @property
    def headers(self) -> dict[str, str] | None:
        return self.response_headers or None


@dataclass
class UpstreamAppError(AppError):
    """Raised when the upstream provider fails or returns unusable data.

    Attributes:
        upstream_status: Status code returned by the provider, if any. When
            absent (timeout, connection failure, empty data) the error maps
            to 502 Bad Gateway.
    """

    upstream_status: int | None = None

    status_code: ClassVar[int] = 502

    @property
    def http_status(self) -> int:
        return self.upstream_status or self.status_code
