"""Sliding-window rate limiter.

A window of acquisition timestamps over ``window`` seconds holding at most
``max_calls`` entries. Saturated callers wait in bounded slices until the
oldest timestamp leaves the window; nothing is ever rejected or dropped.
"""
from __future__ import annotations

import time
from collections import deque
from threading import RLock
from typing import Callable, Deque, Dict, Any

# Lower bound on a single wait so float rounding cannot stall the loop.
_MIN_WAIT = 0.001


class RateLimiter:
    """Per-adapter sliding window (default 100 calls per 60 s)."""

    def __init__(
        self,
        window: float = 60.0,
        max_calls: int = 100,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        max_wait_slice: float = 1.0,
    ) -> None:
        self.window = window
        self.max_calls = max_calls
        self.max_wait_slice = max_wait_slice
        self._clock = clock
        self._sleep = sleep
        self._stamps: Deque[float] = deque()
        self._lock = RLock()

    def _prune(self, now: float) -> None:
        while self._stamps and now - self._stamps[0] >= self.window:
            self._stamps.popleft()

    def try_acquire(self) -> bool:
        """Take a slot if one is free right now; never blocks."""
        with self._lock:
            now = self._clock()
            self._prune(now)
            if len(self._stamps) < self.max_calls:
                self._stamps.append(now)
                return True
            return False

    def _wait_hint(self) -> float:
        with self._lock:
            now = self._clock()
            self._prune(now)
            if len(self._stamps) < self.max_calls:
                return 0.0
            remaining = self._stamps[0] + self.window - now
            return max(_MIN_WAIT, min(self.max_wait_slice, remaining))

    def acquire(self) -> float:
        """Block until a slot is free, take it, and return the seconds waited."""
        waited = 0.0
        while not self.try_acquire():
            delay = self._wait_hint()
            if delay <= 0:
                continue
            self._sleep(delay)
            waited += delay
        return waited

    def current_usage(self) -> int:
        with self._lock:
            self._prune(self._clock())
            return len(self._stamps)

    def state(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "window_seconds": self.window,
                "max_calls": self.max_calls,
                "in_window": self.current_usage(),
            }

    def reset(self) -> None:
        with self._lock:
            self._stamps.clear()


__all__ = ["RateLimiter"]
