"""Health monitor classification, periodic ticks and lifecycle."""
from __future__ import annotations

import pytest

from relay_providers.base.errors import ProviderError
from relay_providers.base.models import HealthStatus
from relay_providers.manager import HealthMonitor, ProviderRegistry, ProviderState
from relay_providers.tests.vendor_stubs import VendorStub, error_body, openai_completion

SYSTEM = "You are concise."
QUESTION = "Summarize the meeting notes in one line."


@pytest.fixture()
def registry():
    return ProviderRegistry()


@pytest.fixture()
def monitor(registry, clock):
    mon = HealthMonitor(registry, clock=clock)
    yield mon
    mon.stop()


def _register(registry, adapter, name="openai"):
    state = ProviderState(name=name, adapter=adapter, descriptor=adapter.descriptor, order=registry.next_order())
    registry.add(state)
    return state


def test_fresh_provider_is_healthy(registry, monitor, make_openai):
    state = _register(registry, make_openai(VendorStub([(200, openai_completion("ok"))])))
    assert monitor.evaluate(state) is HealthStatus.HEALTHY  # nosec B101


def test_low_reliability_is_degraded(registry, monitor, make_openai):
    adapter = make_openai(VendorStub([(500, error_body("Internal failure", type_="server_error"))]))
    state = _register(registry, adapter)
    with pytest.raises(ProviderError):
        adapter.chat(SYSTEM, QUESTION)

    assert monitor.evaluate(state) is HealthStatus.DEGRADED  # nosec B101


def test_slow_provider_is_degraded(registry, clock, make_openai):
    monitor = HealthMonitor(registry, clock=clock, degraded_latency_ms=1.0)
    adapter = make_openai(VendorStub([(200, openai_completion("The notes say ship Friday."))]))
    state = _register(registry, adapter)
    adapter.state.metrics.record_success(2500.0)

    assert monitor.evaluate(state) is HealthStatus.DEGRADED  # nosec B101


def test_failed_probe_marks_unhealthy_and_success_recovers(registry, monitor, make_openai):
    state = _register(registry, make_openai(VendorStub([(200, openai_completion("ok"))])))

    assert monitor.evaluate(state, probe_ok=False) is HealthStatus.UNHEALTHY  # nosec B101
    assert state.health.consecutive_failures == 1  # nosec B101
    assert state.health.last_error_kind == "health_check"  # nosec B101

    assert monitor.evaluate(state, probe_ok=True) is HealthStatus.HEALTHY  # nosec B101
    assert state.health.consecutive_failures == 0  # nosec B101


def test_failures_at_threshold_stay_unhealthy(registry, monitor, make_openai, clock):
    state = _register(registry, make_openai(VendorStub([(200, openai_completion("ok"))]), circuit_breaker_threshold=2))
    state.health.record_failure(clock(), "service", 2)
    state.health.record_failure(clock(), "service", 2)

    assert monitor.evaluate(state) is HealthStatus.UNHEALTHY  # nosec B101


def test_run_health_checks_probes_every_provider(registry, monitor, make_openai, make_claude, log_events):
    _register(registry, make_openai(VendorStub([(200, openai_completion("Hello!"))])), "openai")
    _register(registry, make_claude(VendorStub([(503, error_body("Overloaded", type_="overloaded_error"))])), "claude")

    results = monitor.run_health_checks()

    assert results == {"openai": "healthy", "claude": "unhealthy"}  # nosec B101
    checked = {e["provider"]: e for e in log_events.named("health.checked")}
    assert checked["claude"]["level"] == "WARNING" and checked["openai"]["probe_ok"] is True  # nosec B101
    assert log_events.named("probe.failed")  # nosec B101


def test_aggregate_metrics_sums_providers(registry, monitor, make_openai, clock):
    adapter = make_openai(VendorStub([(200, openai_completion("The notes say ship Friday."))]))
    _register(registry, adapter)
    adapter.chat(SYSTEM, QUESTION)

    aggregate = monitor.aggregate_metrics()

    assert aggregate["requests"] == 1 and aggregate["successes"] == 1  # nosec B101
    assert aggregate["success_rate"] == 100.0  # nosec B101
    assert aggregate["timestamp"] == clock()  # nosec B101
    assert aggregate["providers"]["openai"]["successes"] == 1  # nosec B101
    assert monitor.last_aggregate is aggregate  # nosec B101


def test_recalibrate_quality_moves_thresholds(registry, monitor, make_openai):
    adapter = make_openai(VendorStub([(200, openai_completion("Sorry, none"))]))
    _register(registry, adapter)
    adapter.chat(SYSTEM, QUESTION)

    assert monitor.recalibrate_quality() == {"openai": 0.75}  # nosec B101
    assert adapter.quality_threshold == 0.75  # nosec B101


def test_start_and_stop(registry, clock):
    monitor = HealthMonitor(registry, clock=clock, health_interval=3600, metrics_interval=3600, quality_interval=3600)

    monitor.start()
    monitor.start()
    assert monitor.running  # nosec B101
    assert len(monitor._threads) == 3  # nosec B101

    monitor.stop()
    assert not monitor.running  # nosec B101


def test_a_failing_tick_is_logged_and_the_loop_survives(registry, monitor, log_events):
    ticks = []

    def tick():
        ticks.append(1)
        if len(ticks) == 2:
            monitor._stop.set()
        raise RuntimeError("tick exploded")

    monitor._loop("health", 0.0, tick)

    assert len(ticks) == 2  # nosec B101
    failures = log_events.named("monitor.tick_failed")
    assert len(failures) == 2 and failures[0]["loop"] == "health"  # nosec B101
