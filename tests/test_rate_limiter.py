"""
Tests for SlidingWindowRateLimiter.
"""

import pytest

from talentrank.core.rate_limiter import SlidingWindowRateLimiter


def _limiter(clock, **kwargs):
    kwargs.setdefault("cleanup_probability", 0.0)
    return SlidingWindowRateLimiter(3, 60, clock=clock, **kwargs)


def test_admits_exactly_max_requests_per_window(clock):
    limiter = _limiter(clock)
    assert [limiter.try_acquire("user") for _ in range(3)] == [True, True, True]
    assert limiter.try_acquire("user") is False


def test_admits_again_after_window_elapses(clock):
    limiter = _limiter(clock)
    for _ in range(3):
        limiter.try_acquire("user")

    clock.advance(30)
    assert limiter.try_acquire("user") is False

    clock.advance(30)
    assert limiter.try_acquire("user") is True


def test_refusal_does_not_consume_window(clock):
    limiter = _limiter(clock)
    limiter.try_acquire("user")
    clock.advance(10)
    limiter.try_acquire("user")
    limiter.try_acquire("user")

    for _ in range(5):
        assert limiter.try_acquire("user") is False
    assert limiter.remaining("user") == 0

    # only the first admission has left the window
    clock.advance(50)
    assert limiter.remaining("user") == 1


def test_identities_are_independent(clock):
    limiter = _limiter(clock)
    for _ in range(3):
        limiter.try_acquire("alice")
    assert limiter.try_acquire("alice") is False
    assert limiter.try_acquire("bob") is True
    assert limiter.remaining("bob") == 2


def test_reset(clock):
    limiter = _limiter(clock)
    for _ in range(3):
        limiter.try_acquire("user")
    limiter.reset("user")
    assert limiter.try_acquire("user") is True


def test_cleanup_drops_idle_identities(clock):
    limiter = _limiter(clock)
    limiter.try_acquire("a")
    limiter.try_acquire("b")
    assert limiter.tracked_identities == 2

    clock.advance(61)
    assert limiter.cleanup() == 2
    assert limiter.tracked_identities == 0


def test_probabilistic_cleanup_runs_on_acquire(clock):
    limiter = SlidingWindowRateLimiter(3, 60, clock=clock, cleanup_probability=1.0)
    limiter.try_acquire("idle")
    clock.advance(61)

    limiter.try_acquire("active")

    assert limiter.tracked_identities == 1


def test_invalid_configuration():
    with pytest.raises(ValueError):
        SlidingWindowRateLimiter(0, 60)
    with pytest.raises(ValueError):
        SlidingWindowRateLimiter(1, 0)
