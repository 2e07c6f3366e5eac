"""Unit tests for in-memory rate limiter adapter."""

import threading
from unittest.mock import Mock

import pytest

from tempmail_relay.adapters.rate_limit.in_memory import InMemoryWindowRateLimiter


def test_allows_up_to_limit_in_same_window() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryWindowRateLimiter(limit=3, window_seconds=60, clock=clock)

    assert limiter.consume("k").allowed is True
    assert limiter.consume("k").allowed is True
    result = limiter.consume("k")
    assert result.allowed is True
    assert result.remaining == 0


def test_blocks_when_over_limit() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryWindowRateLimiter(limit=2, window_seconds=60, clock=clock)

    assert limiter.consume("k").allowed is True
    assert limiter.consume("k").allowed is True

    clock.return_value = 1015.0
    blocked = limiter.consume("k")
    assert blocked.allowed is False
    assert blocked.remaining == 0
    assert blocked.retry_after_seconds == 45
    assert blocked.reset_at == 1060


def test_window_starts_at_first_request_of_key() -> None:
    clock = Mock(return_value=1059.0)
    limiter = InMemoryWindowRateLimiter(limit=1, window_seconds=60, clock=clock)

    assert limiter.consume("k").allowed is True

    # An epoch-aligned window would have reset at 1080; this one lasts until 1119.
    clock.return_value = 1100.0
    assert limiter.consume("k").allowed is False

    clock.return_value = 1119.0
    assert limiter.consume("k").allowed is True


def test_resets_after_window_elapses() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryWindowRateLimiter(limit=1, window_seconds=10, clock=clock)

    assert limiter.consume("k").allowed is True
    assert limiter.consume("k").allowed is False

    clock.return_value = 1010.0
    result = limiter.consume("k")
    assert result.allowed is True
    assert result.remaining == 0
    assert result.reset_after_seconds == 10


def test_blocked_requests_do_not_extend_window() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryWindowRateLimiter(limit=1, window_seconds=10, clock=clock)

    limiter.consume("k")
    for offset in range(1, 10):
        clock.return_value = 1000.0 + offset
        assert limiter.consume("k").allowed is False

    clock.return_value = 1010.0
    assert limiter.consume("k").allowed is True


def test_isolated_by_key() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryWindowRateLimiter(limit=1, window_seconds=60, clock=clock)

    assert limiter.consume("k1").allowed is True
    assert limiter.consume("k1").allowed is False

    assert limiter.consume("k2").allowed is True


def test_expired_windows_are_swept() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryWindowRateLimiter(limit=5, window_seconds=60, clock=clock)

    for key in ("a", "b", "c"):
        limiter.consume(key)
    assert len(limiter) == 3

    clock.return_value = 1061.0
    limiter.consume("d")
    assert len(limiter) == 1


def test_least_recently_used_key_is_evicted() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryWindowRateLimiter(limit=1, window_seconds=60, max_keys=2, clock=clock)

    limiter.consume("a")
    limiter.consume("b")
    limiter.consume("a")
    limiter.consume("c")

    assert len(limiter) == 2
    # "b" was evicted, so it starts a fresh window
    assert limiter.consume("b").allowed is True
    assert limiter.consume("c").allowed is False


def test_reset_forgets_windows() -> None:
    limiter = InMemoryWindowRateLimiter(limit=1, window_seconds=60, clock=Mock(return_value=1.0))

    limiter.consume("k")
    limiter.reset("k")
    assert limiter.consume("k").allowed is True

    limiter.reset()
    assert len(limiter) == 0


@pytest.mark.parametrize(
    "kwargs",
    [
        {"limit": 0, "window_seconds": 60},
        {"limit": 1, "window_seconds": 0},
        {"limit": 1, "window_seconds": 60, "max_keys": 0},
    ],
)
def test_invalid_constructor_args(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        InMemoryWindowRateLimiter(**kwargs)


def test_invalid_consume_args() -> None:
    limiter = InMemoryWindowRateLimiter(limit=1, window_seconds=60)

    with pytest.raises(ValueError):
        limiter.consume("")

    with pytest.raises(ValueError):
        limiter.consume("k", cost=0)


def test_concurrent_consumers_never_exceed_limit() -> None:
    limiter = InMemoryWindowRateLimiter(limit=500, window_seconds=60, clock=Mock(return_value=1000.0))
    results: list[bool] = []
    results_lock = threading.Lock()
    start = threading.Barrier(10)

    def worker() -> None:
        start.wait()
        allowed = [limiter.consume("k").allowed for _ in range(100)]
        with results_lock:
            results.extend(allowed)

    threads = [threading.Thread(target=worker) for _ in range(10)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(results) == 1000
    assert results.count(True) == 500
