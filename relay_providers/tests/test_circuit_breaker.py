"""Two-state circuit breaker tests."""
from __future__ import annotations

from relay_providers.base.resilience import CircuitBreaker


def _tripped(clock, threshold=5, cooldown=60.0):
    breaker = CircuitBreaker(threshold=threshold, cooldown=cooldown, clock=clock)
    for _ in range(threshold):
        breaker.record_failure()
    return breaker


def test_threshold_failures_open_the_breaker(clock):
    breaker = CircuitBreaker(threshold=5, cooldown=60.0, clock=clock)
    for _ in range(4):
        breaker.record_failure()
    assert breaker.allow()  # nosec B101

    breaker.record_failure()

    assert breaker.is_open  # nosec B101
    assert not breaker.allow()  # nosec B101
    assert breaker.remaining_cooldown() == 60.0  # nosec B101


def test_success_resets_the_failure_streak(clock):
    breaker = CircuitBreaker(threshold=3, clock=clock)
    breaker.record_failure()
    breaker.record_failure()
    breaker.record_success()
    breaker.record_failure()
    breaker.record_failure()
    assert not breaker.is_open  # nosec B101


def test_trial_call_allowed_after_cooldown(clock):
    breaker = _tripped(clock)
    clock.advance(59)
    assert not breaker.allow()  # nosec B101

    clock.advance(1)
    assert breaker.allow()  # nosec B101
    breaker.record_success()

    assert not breaker.is_open  # nosec B101
    assert breaker.state()["consecutive_failures"] == 0  # nosec B101


def test_failed_trial_reopens_immediately(clock):
    breaker = _tripped(clock)
    clock.advance(60)
    assert breaker.allow()  # nosec B101

    breaker.record_failure()

    assert breaker.is_open  # nosec B101
    assert breaker.remaining_cooldown() == 60.0  # nosec B101
    assert breaker.state()["trips"] == 2  # nosec B101


def test_every_caller_is_admitted_once_the_cooldown_ends(clock):
    breaker = _tripped(clock)
    clock.advance(60)

    assert [breaker.allow() for _ in range(3)] == [True, True, True]  # nosec B101
    assert breaker.trial_pending  # nosec B101

    breaker.record_failure()
    assert not breaker.allow()  # nosec B101


def test_reset_closes(clock):
    breaker = _tripped(clock)
    breaker.reset()
    assert breaker.allow()  # nosec B101
    assert breaker.state()["trips"] == 0  # nosec B101
