"""Background health monitoring for registered providers.

Three independent daemon loops run while the monitor is started:

- every 30 s: probe each adapter (``health_check``) and reclassify it
- every 60 s: aggregate metrics across providers and reclassify from metrics
- every 300 s: nudge each adapter's quality threshold toward its observed mean

None of them gates in-flight calls; they only update the health records and
adapter state that selection reads. Each tick is also callable directly.
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional

from ..base.errors import classify_exception
from ..base.logging import get_logger, log_event
from ..base.models import HealthStatus
from ..config.defaults import (
    DEGRADED_LATENCY_MS,
    DEGRADED_RELIABILITY_PERCENT,
    HEALTH_CHECK_INTERVAL_SECONDS,
    METRICS_INTERVAL_SECONDS,
    QUALITY_RECALIBRATION_INTERVAL_SECONDS,
)
from .registry import ProviderRegistry, ProviderState


class HealthMonitor:
    """Periodic probes, metrics aggregation and quality recalibration."""

    def __init__(
        self,
        registry: ProviderRegistry,
        *,
        clock: Callable[[], float] = time.monotonic,
        health_interval: float = HEALTH_CHECK_INTERVAL_SECONDS,
        metrics_interval: float = METRICS_INTERVAL_SECONDS,
        quality_interval: float = QUALITY_RECALIBRATION_INTERVAL_SECONDS,
        degraded_reliability: float = DEGRADED_RELIABILITY_PERCENT,
        degraded_latency_ms: float = DEGRADED_LATENCY_MS,
    ) -> None:
        self._registry = registry
        self._clock = clock
        self.health_interval = health_interval
        self.metrics_interval = metrics_interval
        self.quality_interval = quality_interval
        self.degraded_reliability = degraded_reliability
        self.degraded_latency_ms = degraded_latency_ms
        self.last_aggregate: Dict[str, Any] = {}
        self._stop = threading.Event()
        self._threads: List[threading.Thread] = []
        self._lock = threading.RLock()
        self._logger = get_logger("providers.health")

    # ---- classification ----------------------------------------------------
    def evaluate(self, state: ProviderState, probe_ok: Optional[bool] = None) -> HealthStatus:
        """Reclassify ``state``; ``probe_ok`` is the result of a fresh probe, if any."""
        metrics = state.adapter.state.metrics
        threshold = state.adapter.config.circuit_breaker_threshold
        reliability = metrics.reliability
        latency = metrics.average_latency_ms
        with state.lock:
            health = state.health
            now = self._clock()
            if probe_ok is False:
                health.record_failure(now, "health_check", threshold)
                status = HealthStatus.UNHEALTHY
            else:
                if probe_ok:
                    health.record_success(now)
                if health.consecutive_failures >= threshold:
                    status = HealthStatus.UNHEALTHY
                elif reliability < self.degraded_reliability or latency > self.degraded_latency_ms:
                    status = HealthStatus.DEGRADED
                else:
                    status = HealthStatus.HEALTHY
            health.status = status
        return status

    # ---- ticks -------------------------------------------------------------
    def run_health_checks(self) -> Dict[str, str]:
        results: Dict[str, str] = {}
        for state in self._registry.states():
            ok = state.adapter.health_check()
            status = self.evaluate(state, ok)
            results[state.name] = status.value
            log_event(
                self._logger,
                "health.checked",
                provider=state.name,
                status=status.value,
                probe_ok=ok,
                level=logging.INFO if ok else logging.WARNING,
            )
        return results

    def aggregate_metrics(self) -> Dict[str, Any]:
        providers: Dict[str, Any] = {}
        requests = successes = failures = 0
        total_cost = 0.0
        for state in self._registry.states():
            self.evaluate(state)
            snap = state.adapter.state.metrics.snapshot()
            providers[state.name] = snap.to_dict()
            requests += snap.requests
            successes += snap.successes
            failures += snap.failures
            total_cost += snap.total_cost
        aggregate = {
            "timestamp": self._clock(),
            "providers": providers,
            "requests": requests,
            "successes": successes,
            "failures": failures,
            "success_rate": 100.0 if requests == 0 else successes / max(1, successes + failures) * 100.0,
            "total_cost": total_cost,
        }
        with self._lock:
            self.last_aggregate = aggregate
        log_event(
            self._logger,
            "metrics.aggregated",
            providers=len(providers),
            requests=requests,
            failures=failures,
            total_cost=round(total_cost, 6),
        )
        return aggregate

    def recalibrate_quality(self) -> Dict[str, float]:
        thresholds: Dict[str, float] = {}
        for state in self._registry.states():
            thresholds[state.name] = state.adapter.recalibrate_quality_threshold()
        log_event(self._logger, "quality.recalibrated", thresholds=thresholds)
        return thresholds

    # ---- lifecycle ---------------------------------------------------------
    @property
    def running(self) -> bool:
        with self._lock:
            return any(t.is_alive() for t in self._threads)

    def start(self) -> None:
        """Start the three loops (no-op when already running)."""
        with self._lock:
            if any(t.is_alive() for t in self._threads):
                return
            self._stop.clear()
            loops = (
                ("health", self.health_interval, self.run_health_checks),
                ("metrics", self.metrics_interval, self.aggregate_metrics),
                ("quality", self.quality_interval, self.recalibrate_quality),
            )
            self._threads = [
                threading.Thread(
                    target=self._loop,
                    args=(label, interval, tick),
                    name=f"providers-{label}-monitor",
                    daemon=True,
                )
                for label, interval, tick in loops
            ]
            for thread in self._threads:
                thread.start()
        log_event(self._logger, "monitor.started")

    def stop(self, timeout: float = 5.0) -> None:
        self._stop.set()
        with self._lock:
            threads, self._threads = self._threads, []
        for thread in threads:
            thread.join(timeout)
        if threads:
            log_event(self._logger, "monitor.stopped")

    def _loop(self, label: str, interval: float, tick: Callable[[], Any]) -> None:
        while not self._stop.wait(interval):
            try:
                tick()
            except Exception as exc:  # noqa: BLE001 - a failed tick must not end the loop
                log_event(
                    self._logger,
                    "monitor.tick_failed",
                    level=logging.ERROR,
                    loop=label,
                    error_code=classify_exception(exc).value,
                    error=str(exc)[:300],
                )


__all__ = ["HealthMonitor"]
