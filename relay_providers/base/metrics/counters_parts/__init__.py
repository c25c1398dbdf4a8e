"""One-class-per-file parts for adapter performance metrics."""

from .latency_stats_snapshot import LatencyStatsSnapshot
from .metrics_snapshot import MetricsSnapshot
from .performance_metrics import PerformanceMetrics, HISTORY_LIMIT

__all__ = [
    "LatencyStatsSnapshot",
    "MetricsSnapshot",
    "PerformanceMetrics",
    "HISTORY_LIMIT",
]
