"""Performance metrics snapshot dataclass.

Immutable point-in-time copy of :class:`PerformanceMetrics`, handed to the
selection engine, ``get_info`` and the manager's aggregated status.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from .latency_stats_snapshot import LatencyStatsSnapshot


@dataclass(frozen=True)
class MetricsSnapshot:
    """Counters of one adapter at a point in time.

    ``reliability`` is successes / (successes + failures) x 100 and reads 100
    before any call completed. ``quality_score`` is the rolling mean of the
    0-100 response quality scores, ``None`` before the first scored reply.
    """

    provider: str
    requests: int
    successes: int
    failures: int
    cache_hits: int
    in_flight: int
    failures_by_kind: Dict[str, int]
    latency: LatencyStatsSnapshot
    total_cost: float
    tokens_used: int
    reliability: float
    quality_score: Optional[float]
    requests_per_minute: int
    validation_latency_ms: Optional[float]

    @property
    def average_latency_ms(self) -> float:
        return self.latency.avg_ms or 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Return a dictionary representation suitable for JSON serialization."""
        data = asdict(self)
        data["average_latency_ms"] = self.average_latency_ms
        return data


__all__ = ["MetricsSnapshot"]
