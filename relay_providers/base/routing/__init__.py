"""Provider selection: candidate views, scores, strategies and the engine."""

from .candidate import CandidateView, DEFAULT_CONCURRENCY_LIMIT
from .estimators import CapacityEstimator, ConstantEstimator, PerformancePredictor
from .scoring import (
    LATENCY_BUDGET_MS,
    ScoreWeights,
    combined_score,
    health_score,
    performance_score,
    suitability_score,
)
from .selection import SelectionEngine, SelectionRule
from .strategies import (
    LeastLoadedStrategy,
    PredictiveStrategy,
    RoundRobinStrategy,
    SelectionStrategy,
    WeightedPerformanceStrategy,
)

__all__ = [
    "CandidateView",
    "DEFAULT_CONCURRENCY_LIMIT",
    "CapacityEstimator",
    "PerformancePredictor",
    "ConstantEstimator",
    "ScoreWeights",
    "health_score",
    "performance_score",
    "suitability_score",
    "combined_score",
    "LATENCY_BUDGET_MS",
    "SelectionEngine",
    "SelectionRule",
    "SelectionStrategy",
    "RoundRobinStrategy",
    "WeightedPerformanceStrategy",
    "LeastLoadedStrategy",
    "PredictiveStrategy",
]
