"""
Per-adapter resilience bundle.

One instance per adapter holds the four pieces of mutable state shared by
every concurrent call to that adapter. Each piece carries its own lock.
"""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict

from ..dto import AdapterConfig
from ..metrics import PerformanceMetrics
from ..resilience import CircuitBreaker, RateLimiter, ResponseCache


@dataclass
class AdapterState:
    cache: ResponseCache
    rate_limiter: RateLimiter
    breaker: CircuitBreaker
    metrics: PerformanceMetrics

    @classmethod
    def create(
        cls,
        provider: str,
        config: AdapterConfig,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> "AdapterState":
        return cls(
            cache=ResponseCache(config.cache_ttl, config.cache_max_entries, clock=clock),
            rate_limiter=RateLimiter(config.rate_limit_window, config.rate_limit_max, clock=clock, sleep=sleep),
            breaker=CircuitBreaker(config.circuit_breaker_threshold, config.circuit_breaker_cooldown, clock=clock),
            metrics=PerformanceMetrics(provider, clock=clock),
        )

    def reset(self) -> None:
        self.cache.clear()
        self.rate_limiter.reset()
        self.breaker.reset()
        self.metrics.reset()

    def describe(self) -> Dict[str, Any]:
        return {
            "cache_size": len(self.cache),
            "rate_limit": self.rate_limiter.state(),
            "circuit_breaker": self.breaker.state(),
            "metrics": self.metrics.snapshot().to_dict(),
        }


__all__ = ["AdapterState"]
