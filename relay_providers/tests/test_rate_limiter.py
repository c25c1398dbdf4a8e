"""Sliding-window rate limiter tests (fake clock, no real sleeping)."""
from __future__ import annotations

from relay_providers.base.resilience import RateLimiter


def test_150_acquisitions_never_exceed_100_per_window(clock):
    limiter = RateLimiter(window=60.0, max_calls=100, clock=clock, sleep=clock.sleep)
    start = clock()
    stamps = []

    for _ in range(150):
        limiter.acquire()
        stamps.append(clock())

    assert len(stamps) == 150  # nosec B101 - every call eventually completes
    for t in stamps:
        in_window = sum(1 for s in stamps if t - 60.0 < s <= t)
        assert in_window <= 100  # nosec B101
    assert clock() - start >= 60.0  # nosec B101
    assert all(0 < s <= 1.0 for s in clock.sleeps)  # nosec B101 - bounded wait slices


def test_first_calls_do_not_wait(clock):
    limiter = RateLimiter(window=60.0, max_calls=3, clock=clock, sleep=clock.sleep)
    assert [limiter.acquire() for _ in range(3)] == [0.0, 0.0, 0.0]  # nosec B101
    assert limiter.current_usage() == 3  # nosec B101
    assert not limiter.try_acquire()  # nosec B101


def test_acquire_reports_time_waited(clock):
    limiter = RateLimiter(window=10.0, max_calls=1, clock=clock, sleep=clock.sleep)
    limiter.acquire()
    clock.advance(4.0)

    waited = limiter.acquire()

    assert waited == 6.0  # nosec B101
    assert limiter.state()["in_window"] == 1  # nosec B101


def test_reset_frees_the_window(clock):
    limiter = RateLimiter(window=60.0, max_calls=1, clock=clock, sleep=clock.sleep)
    limiter.acquire()
    limiter.reset()
    assert limiter.try_acquire()  # nosec B101
