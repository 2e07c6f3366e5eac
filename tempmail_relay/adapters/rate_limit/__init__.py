"""Rate limiting adapters.

A small abstraction layer so the relay can start with an in-memory limiter
and later migrate to Redis or another shared store without changing the API
layer.
"""

from tempmail_relay.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from tempmail_relay.adapters.rate_limit.in_memory import InMemoryWindowRateLimiter

__all__ = [
    "AbstractRateLimiter",
    "InMemoryWindowRateLimiter",
    "RateLimitResult",
]
