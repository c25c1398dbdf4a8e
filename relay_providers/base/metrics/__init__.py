"""Provider metrics package.

Exports per-adapter performance counters and snapshots.
"""

from .counters import (
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
