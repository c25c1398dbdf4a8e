"""Adapter performance counters and snapshots.

Re-exports the one-class-per-file implementations from
``metrics/counters_parts`` to keep a single import surface.
"""

from .counters_parts import (
    PerformanceMetrics,
    MetricsSnapshot,
    LatencyStatsSnapshot,
    HISTORY_LIMIT,
)

__all__ = [
    "PerformanceMetrics",
    "MetricsSnapshot",
    "LatencyStatsSnapshot",
    "HISTORY_LIMIT",
]
