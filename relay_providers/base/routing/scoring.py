"""
Score functions used by selection. Every score is on a 0-100 scale.
"""
from __future__ import annotations

from dataclasses import dataclass

from ..models import HealthStatus
from .candidate import CandidateView

LATENCY_BUDGET_MS = 10_000.0
UNSUITED_SCORE = 70.0

_STATUS_BASE = {
    HealthStatus.HEALTHY: 100.0,
    HealthStatus.DEGRADED: 50.0,
    HealthStatus.UNHEALTHY: 0.0,
}


@dataclass(frozen=True)
class ScoreWeights:
    """Weights of the default selection score; they should sum to 1."""

    health: float = 0.3
    performance: float = 0.4
    suitability: float = 0.3


def health_score(view: CandidateView) -> float:
    """Status base score minus 10 points per consecutive failure."""
    base = 0.0 if view.breaker_open else _STATUS_BASE[view.status]
    return max(0.0, base - 10.0 * view.consecutive_failures)


def performance_score(view: CandidateView, latency_budget_ms: float = LATENCY_BUDGET_MS) -> float:
    """70% reliability, 30% latency headroom against ``latency_budget_ms``."""
    if view.average_latency_ms <= 0:
        latency = 100.0
    else:
        latency = max(0.0, 100.0 * (1.0 - view.average_latency_ms / latency_budget_ms))
    return 0.7 * view.reliability + 0.3 * latency


def suitability_score(view: CandidateView, task_type: str) -> float:
    return 100.0 if task_type in view.strengths else UNSUITED_SCORE


def combined_score(
    view: CandidateView,
    task_type: str,
    weights: ScoreWeights = ScoreWeights(),
    latency_budget_ms: float = LATENCY_BUDGET_MS,
) -> float:
    return (
        weights.health * health_score(view)
        + weights.performance * performance_score(view, latency_budget_ms)
        + weights.suitability * suitability_score(view, task_type)
    )


__all__ = [
    "ScoreWeights",
    "health_score",
    "performance_score",
    "suitability_score",
    "combined_score",
    "LATENCY_BUDGET_MS",
]
