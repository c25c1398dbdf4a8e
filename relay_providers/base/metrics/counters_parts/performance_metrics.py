"""Thread-safe performance counters of one adapter.

Updated after every call attempt (cache hits included) and read by the
selection engine and health monitor. Counters only grow until :meth:`reset`.
"""

from __future__ import annotations

import time
from collections import deque
from threading import RLock
from typing import Callable, Deque, Dict, Optional, Tuple

from .latency_stats_snapshot import LatencyStatsSnapshot
from .metrics_snapshot import MetricsSnapshot

HISTORY_LIMIT = 1000


class PerformanceMetrics:
    """Counters, rolling averages and a bounded outcome history.

    Latency is averaged over vendor calls only; cache hits count as requests
    and successes but never move the latency average.
    """

    __slots__ = (
        "_provider",
        "_clock",
        "_lock",
        "_requests",
        "_successes",
        "_failures",
        "_cache_hits",
        "_in_flight",
        "_failures_by_kind",
        "_latency_count",
        "_latency_total",
        "_latency_min",
        "_latency_max",
        "_total_cost",
        "_tokens_used",
        "_quality_total",
        "_quality_count",
        "_history",
        "_validation_latency_ms",
    )

    def __init__(self, provider: str, clock: Callable[[], float] = time.monotonic):
        self._provider = provider
        self._clock = clock
        self._lock = RLock()
        self._history: Deque[Tuple[float, bool]] = deque(maxlen=HISTORY_LIMIT)
        self._init_counters()

    def _init_counters(self) -> None:
        self._requests = 0
        self._successes = 0
        self._failures = 0
        self._cache_hits = 0
        self._in_flight = 0
        self._failures_by_kind: Dict[str, int] = {}
        self._latency_count = 0
        self._latency_total = 0.0
        self._latency_min: Optional[float] = None
        self._latency_max: Optional[float] = None
        self._total_cost = 0.0
        self._tokens_used = 0
        self._quality_total = 0.0
        self._quality_count = 0
        self._validation_latency_ms: Optional[float] = None
        self._history.clear()

    # -------------------------- Record Methods -------------------------- #
    def record_start(self) -> None:
        """A vendor call is about to be made."""
        with self._lock:
            self._requests += 1
            self._in_flight += 1

    def record_success(
        self,
        latency_ms: float,
        *,
        tokens: int = 0,
        cost: float = 0.0,
        quality: Optional[float] = None,
    ) -> None:
        with self._lock:
            self._successes += 1
            self._in_flight = max(0, self._in_flight - 1)
            self._update_latency(latency_ms)
            self._tokens_used += max(0, int(tokens))
            self._total_cost += max(0.0, cost)
            if quality is not None:
                self._quality_total += quality
                self._quality_count += 1
            self._history.append((self._clock(), True))

    def record_failure(self, kind: str, latency_ms: Optional[float] = None, *, started: bool = True) -> None:
        """Record a failed call.

        ``started=False`` is used for gate failures (open breaker) that never
        reached :meth:`record_start`; they still count as a request.
        """
        with self._lock:
            if started:
                self._in_flight = max(0, self._in_flight - 1)
            else:
                self._requests += 1
            self._failures += 1
            self._failures_by_kind[kind] = self._failures_by_kind.get(kind, 0) + 1
            if latency_ms is not None:
                self._update_latency(latency_ms)
            self._history.append((self._clock(), False))

    def record_cache_hit(self) -> None:
        with self._lock:
            self._requests += 1
            self._successes += 1
            self._cache_hits += 1
            self._history.append((self._clock(), True))

    def record_validation(self, latency_ms: float) -> None:
        """Store the key-validation latency used for default-provider decisions."""
        with self._lock:
            self._validation_latency_ms = latency_ms

    def _update_latency(self, latency_ms: float) -> None:
        if latency_ms < 0:
            return
        if self._latency_min is None or latency_ms < self._latency_min:
            self._latency_min = latency_ms
        if self._latency_max is None or latency_ms > self._latency_max:
            self._latency_max = latency_ms
        self._latency_count += 1
        self._latency_total += latency_ms

    # -------------------------- Derived Values -------------------------- #
    @property
    def in_flight(self) -> int:
        with self._lock:
            return self._in_flight

    @property
    def reliability(self) -> float:
        with self._lock:
            done = self._successes + self._failures
            return 100.0 if done == 0 else self._successes / done * 100.0

    @property
    def average_latency_ms(self) -> float:
        with self._lock:
            return self._latency_total / self._latency_count if self._latency_count else 0.0

    @property
    def quality_score(self) -> Optional[float]:
        with self._lock:
            return self._quality_total / self._quality_count if self._quality_count else None

    def requests_per_minute(self) -> int:
        with self._lock:
            cutoff = self._clock() - 60.0
            return sum(1 for ts, _ in self._history if ts > cutoff)

    # -------------------------- Snapshot API -------------------------- #
    def snapshot(self) -> MetricsSnapshot:
        with self._lock:
            avg = self._latency_total / self._latency_count if self._latency_count else None
            return MetricsSnapshot(
                provider=self._provider,
                requests=self._requests,
                successes=self._successes,
                failures=self._failures,
                cache_hits=self._cache_hits,
                in_flight=self._in_flight,
                failures_by_kind=dict(self._failures_by_kind),
                latency=LatencyStatsSnapshot(
                    count=self._latency_count,
                    total_ms=self._latency_total,
                    min_ms=self._latency_min,
                    max_ms=self._latency_max,
                    avg_ms=avg,
                ),
                total_cost=self._total_cost,
                tokens_used=self._tokens_used,
                reliability=self.reliability,
                quality_score=self.quality_score,
                requests_per_minute=self.requests_per_minute(),
                validation_latency_ms=self._validation_latency_ms,
            )

    def reset(self) -> None:
        """Zero every counter (adapter cleanup)."""
        with self._lock:
            self._init_counters()


__all__ = ["PerformanceMetrics", "HISTORY_LIMIT"]
