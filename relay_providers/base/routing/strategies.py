"""Load-balancing strategies.

Each strategy picks one candidate from an ordered sequence of
:class:`CandidateView` objects. Ties always resolve to the earliest
candidate (registration order) because ``max``/``min`` keep the first best
element.
"""
from __future__ import annotations

from threading import RLock
from typing import Any, Mapping, Optional, Protocol, Sequence

from .candidate import CandidateView
from .estimators import CapacityEstimator, ConstantEstimator, PerformancePredictor
from .scoring import LATENCY_BUDGET_MS, health_score, performance_score


class SelectionStrategy(Protocol):
    name: str

    def choose(self, candidates: Sequence[CandidateView], context: Mapping[str, Any]) -> Optional[CandidateView]: ...


class RoundRobinStrategy:
    """Rotate through the candidates on every call."""

    name = "round_robin"

    def __init__(self) -> None:
        self._index = 0
        self._lock = RLock()

    def choose(self, candidates: Sequence[CandidateView], context: Mapping[str, Any]) -> Optional[CandidateView]:
        if not candidates:
            return None
        with self._lock:
            pick = candidates[self._index % len(candidates)]
            self._index += 1
        return pick


class WeightedPerformanceStrategy:
    """0.4 health + 0.4 performance + 0.2 spare capacity."""

    name = "weighted_performance"

    def __init__(self, latency_budget_ms: float = LATENCY_BUDGET_MS) -> None:
        self.latency_budget_ms = latency_budget_ms

    def weight(self, view: CandidateView) -> float:
        return (
            0.4 * health_score(view)
            + 0.4 * performance_score(view, self.latency_budget_ms)
            + 0.2 * (100.0 - view.load)
        )

    def choose(self, candidates: Sequence[CandidateView], context: Mapping[str, Any]) -> Optional[CandidateView]:
        if not candidates:
            return None
        return max(candidates, key=self.weight)


class LeastLoadedStrategy:
    name = "least_loaded"

    def choose(self, candidates: Sequence[CandidateView], context: Mapping[str, Any]) -> Optional[CandidateView]:
        if not candidates:
            return None
        return min(candidates, key=lambda view: view.load)


class PredictiveStrategy:
    """Historical performance times predicted capacity."""

    name = "predictive"

    def __init__(
        self,
        predictor: Optional[PerformancePredictor] = None,
        capacity: Optional[CapacityEstimator] = None,
    ) -> None:
        self.predictor = predictor or ConstantEstimator()
        self.capacity = capacity or ConstantEstimator()

    def choose(self, candidates: Sequence[CandidateView], context: Mapping[str, Any]) -> Optional[CandidateView]:
        if not candidates:
            return None
        return max(
            candidates,
            key=lambda view: self.predictor.predict_performance(view, context)
            * self.capacity.estimate_capacity(view, context),
        )


__all__ = [
    "SelectionStrategy",
    "RoundRobinStrategy",
    "WeightedPerformanceStrategy",
    "LeastLoadedStrategy",
    "PredictiveStrategy",
]
