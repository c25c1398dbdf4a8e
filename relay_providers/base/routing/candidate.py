"""
Point-in-time view of one registered provider, as seen by selection.

The manager builds one view per provider under the provider's lock, so
scoring and strategies work on a consistent snapshot and stay pure.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

from ..models import HealthStatus

DEFAULT_CONCURRENCY_LIMIT = 10


@dataclass(frozen=True)
class CandidateView:
    """Selection inputs for one provider.

    Attributes:
        name: Registry key.
        order: Registration order; ties resolve to the lowest value.
        status: Health classification from the monitor.
        consecutive_failures: Failures since the last success.
        breaker_open: Whether the adapter's circuit breaker is open.
        reliability: Success percentage (0-100).
        average_latency_ms: Mean vendor latency (0 when unknown).
        in_flight: Calls currently executing.
        strengths: Task types the provider is suited for.
        concurrency_limit: In-flight calls that count as full load.
    """

    name: str
    order: int
    status: HealthStatus = HealthStatus.HEALTHY
    consecutive_failures: int = 0
    breaker_open: bool = False
    reliability: float = 100.0
    average_latency_ms: float = 0.0
    in_flight: int = 0
    strengths: Tuple[str, ...] = field(default_factory=tuple)
    concurrency_limit: int = DEFAULT_CONCURRENCY_LIMIT

    @property
    def healthy(self) -> bool:
        return self.status is not HealthStatus.UNHEALTHY and not self.breaker_open

    @property
    def load(self) -> float:
        """Current load as a percentage of the concurrency limit (0-100)."""
        if self.concurrency_limit <= 0:
            return 100.0
        return min(100.0, self.in_flight / self.concurrency_limit * 100.0)


__all__ = ["CandidateView", "DEFAULT_CONCURRENCY_LIMIT"]
