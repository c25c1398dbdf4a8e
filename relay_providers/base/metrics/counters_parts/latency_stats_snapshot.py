"""Latency statistics snapshot dataclass.

Immutable aggregate of the non-cached call latencies of one adapter. Kept
separate to enforce one-class-per-file governance.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class LatencyStatsSnapshot:
    """Immutable snapshot of aggregated latency statistics.

    Attributes:
        count: Number of completed vendor calls with recorded latency.
        total_ms: Sum of all observed latencies in milliseconds.
        min_ms: Minimum observed latency (ms) or None if no samples.
        max_ms: Maximum observed latency (ms) or None if no samples.
        avg_ms: Arithmetic mean (ms) or None if no samples.
    """

    count: int
    total_ms: float
    min_ms: Optional[float]
    max_ms: Optional[float]
    avg_ms: Optional[float]


__all__ = ["LatencyStatsSnapshot"]
