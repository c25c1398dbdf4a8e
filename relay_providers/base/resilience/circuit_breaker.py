"""Two-state circuit breaker.

``threshold`` consecutive failures open the breaker. While open, ``allow()``
answers ``False`` until the cooldown has elapsed; the next call then resets
the breaker to closed and runs as a trial. A failing trial re-opens the
breaker at once and restarts the cooldown.

There is no half-open state: once the cooldown has elapsed every caller is
admitted, not only the first, until a failure re-opens the breaker.
"""
from __future__ import annotations

import time
from threading import RLock
from typing import Any, Callable, Dict, Optional


class CircuitBreaker:
    def __init__(
        self,
        threshold: int = 5,
        cooldown: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.threshold = threshold
        self.cooldown = cooldown
        self._clock = clock
        self._lock = RLock()
        self.is_open = False
        self.consecutive_failures = 0
        self.cooldown_ends_at: Optional[float] = None
        self.trial_pending = False
        self.trips = 0

    def allow(self) -> bool:
        with self._lock:
            if not self.is_open:
                return True
            if self.cooldown_ends_at is not None and self._clock() >= self.cooldown_ends_at:
                self.is_open = False
                self.consecutive_failures = 0
                self.cooldown_ends_at = None
                self.trial_pending = True
                return True
            return False

    def record_success(self) -> None:
        with self._lock:
            self.consecutive_failures = 0
            self.trial_pending = False

    def record_failure(self) -> None:
        with self._lock:
            self.consecutive_failures += 1
            if self.trial_pending or self.consecutive_failures >= self.threshold:
                self._open()

    def _open(self) -> None:
        self.is_open = True
        self.trial_pending = False
        self.cooldown_ends_at = self._clock() + self.cooldown
        self.trips += 1

    def remaining_cooldown(self) -> float:
        with self._lock:
            if not self.is_open or self.cooldown_ends_at is None:
                return 0.0
            return max(0.0, self.cooldown_ends_at - self._clock())

    def state(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "is_open": self.is_open,
                "consecutive_failures": self.consecutive_failures,
                "threshold": self.threshold,
                "cooldown_remaining": self.remaining_cooldown(),
                "trips": self.trips,
            }

    def reset(self) -> None:
        with self._lock:
            self.is_open = False
            self.consecutive_failures = 0
            self.cooldown_ends_at = None
            self.trial_pending = False
            self.trips = 0


__all__ = ["CircuitBreaker"]
