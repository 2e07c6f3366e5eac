"""Rate limiting dependency for FastAPI routes.

This module wires the rate limiting adapter into the HTTP layer.

Design goals:
- Minimal coupling: API routes depend on a dependency function only.
- Swap-friendly: storage backend can be replaced (e.g., Redis) behind an
  abstract interface.
- Injected state: limiters live in a registry stored on ``app.state``, so
  tests build isolated registries with a fake clock.

Rate limiting strategy:
- Two route classes (account creation, general) with independent limits,
  windows and counters.
- Keyed by client address, resolved through the trusted proxy hops.
"""

from __future__ import annotations

import enum
import hashlib
import logging
import time
from dataclasses import dataclass
from typing import Callable

from fastapi import Request, Response

from tempmail_relay.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from tempmail_relay.adapters.rate_limit.in_memory import InMemoryWindowRateLimiter
from tempmail_relay.core.client_ip import get_client_address
from tempmail_relay.core.config import AppSettings
from tempmail_relay.core.errors import RateLimitAppError

logger = logging.getLogger(__name__)

# Request state attribute holding the headers computed for this request, so
# error responses rendered by the exception handlers carry them too.
RATE_LIMIT_HEADERS_STATE = "rate_limit_headers"


class RouteClass(str, enum.Enum):
    """Rate limit classification of an endpoint."""

    ACCOUNT = "account"
    GENERAL = "general"


@dataclass(frozen=True)
class RateLimitPolicy:
    """Limit, window and rejection message for one route class."""

    limit: int
    window_seconds: int
    message: str


ACCOUNT_LIMIT_MESSAGE = "Too many account creations, please wait a minute."
GENERAL_LIMIT_MESSAGE = "Too many requests, please wait a minute."


def build_policies(app_settings: AppSettings) -> dict[RouteClass, RateLimitPolicy]:
    """Derive per-route-class policies from application settings."""
    return {
        RouteClass.ACCOUNT: RateLimitPolicy(
            limit=app_settings.rate_limit_account_requests,
            window_seconds=app_settings.rate_limit_account_window_seconds,
            message=ACCOUNT_LIMIT_MESSAGE,
        ),
        RouteClass.GENERAL: RateLimitPolicy(
            limit=app_settings.rate_limit_general_requests,
            window_seconds=app_settings.rate_limit_general_window_seconds,
            message=GENERAL_LIMIT_MESSAGE,
        ),
    }


class RateLimiterRegistry:
    """Holds one limiter per route class plus the admission settings.

    Attributes:
        enabled: When False every request is admitted without counting.
        include_headers: Whether RateLimit-* / Retry-After headers are emitted.
        trust_proxy_hops: Trusted proxy hops used to derive the client key.
    """

    def __init__(
        self,
        policies: dict[RouteClass, RateLimitPolicy],
        *,
        enabled: bool = True,
        include_headers: bool = True,
        trust_proxy_hops: int = 1,
        max_keys: int = 10000,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.enabled = enabled
        self.include_headers = include_headers
        self.trust_proxy_hops = trust_proxy_hops
        self._policies = dict(policies)
        self._limiters: dict[RouteClass, AbstractRateLimiter] = {}
        for route_class, policy in self._policies.items():
            self._limiters[route_class] = InMemoryWindowRateLimiter(
                limit=policy.limit,
                window_seconds=policy.window_seconds,
                max_keys=max_keys,
                clock=clock or time.time,
            )

    @classmethod
    def from_settings(
        cls,
        app_settings: AppSettings,
        *,
        clock: Callable[[], float] | None = None,
    ) -> "RateLimiterRegistry":
        return cls(
            build_policies(app_settings),
            enabled=app_settings.rate_limit_enabled,
            include_headers=app_settings.rate_limit_include_headers,
            trust_proxy_hops=app_settings.trust_proxy_hops,
            max_keys=app_settings.rate_limit_max_keys,
            clock=clock,
        )

    def policy(self, route_class: RouteClass) -> RateLimitPolicy:
        return self._policies[route_class]

    def admit(self, route_class: RouteClass, client_key: str) -> RateLimitResult:
        """Consume one unit of ``client_key``'s budget for ``route_class``."""
        return self._limiters[route_class].consume(client_key)

    def reset(self) -> None:
        """Forget every client window of every route class."""
        for limiter in self._limiters.values():
            limiter.reset()


def build_rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    """Standard RateLimit-* headers (legacy X-RateLimit-* are not emitted)."""
    headers = {
        "RateLimit-Limit": str(result.limit),
        "RateLimit-Remaining": str(result.remaining),
        "RateLimit-Reset": str(result.reset_after_seconds),
    }
    if not result.allowed and result.retry_after_seconds is not None:
        headers["Retry-After"] = str(result.retry_after_seconds)
    return headers


def get_rate_limiter_registry(request: Request) -> RateLimiterRegistry:
    return request.app.state.rate_limiters


def _hash_limiter_key(key: str) -> str:
    """Hash the rate limit key for logging without exposing client addresses."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


def rate_limit(route_class: RouteClass):
    """Build a FastAPI dependency enforcing the limit of ``route_class``.

    Usage:
        @router.get("/domains", dependencies=[Depends(rate_limit(RouteClass.GENERAL))])

    The dependency consumes 1 unit from the caller's budget. When the budget
    is exhausted it raises RateLimitAppError, rendered as HTTP 429 by the
    global exception handler.
    """

    async def enforce_rate_limit(request: Request, response: Response) -> None:
        registry = get_rate_limiter_registry(request)
        if not registry.enabled:
            return

        key = f"ip:{get_client_address(request, registry.trust_proxy_hops)}"
        key_hash = _hash_limiter_key(key)
        policy = registry.policy(route_class)

        result = registry.admit(route_class, key)
        headers = build_rate_limit_headers(result) if registry.include_headers else {}
        if headers:
            setattr(request.state, RATE_LIMIT_HEADERS_STATE, headers)
            response.headers.update(headers)

        if result.allowed:
            logger.debug(
                "rate_limit.allowed",
                extra={
                    "route_class": route_class.value,
                    "key_hash": key_hash,
                    "limit": result.limit,
                    "remaining": result.remaining,
                    "window_s": policy.window_seconds,
                },
            )
            return

        retry_after = result.retry_after_seconds or 0
        logger.warning(
            "rate_limit.exceeded",
            extra={
                "route_class": route_class.value,
                "key_hash": key_hash,
                "limit": result.limit,
                "remaining": result.remaining,
                "window_s": policy.window_seconds,
                "retry_after_s": retry_after,
            },
        )

        raise RateLimitAppError(
            code="rate_limited",
            message=policy.message,
            retry_after=retry_after,
            response_headers=headers,
        )

    enforce_rate_limit.__name__ = f"enforce_{route_class.value}_rate_limit"
    return enforce_rate_limit
