"""
Pluggable estimators for the predictive strategy.

Both default to a constant factor of 1.0, which makes the predictive
strategy fall back to registration order among otherwise equal providers.
"""
from __future__ import annotations

from typing import Any, Mapping, Protocol

from .candidate import CandidateView


class CapacityEstimator(Protocol):
    def estimate_capacity(self, view: CandidateView, context: Mapping[str, Any]) -> float: ...


class PerformancePredictor(Protocol):
    def predict_performance(self, view: CandidateView, context: Mapping[str, Any]) -> float: ...


class ConstantEstimator:
    """Estimator returning the same factor for every provider."""

    def __init__(self, value: float = 1.0) -> None:
        self.value = value

    def estimate_capacity(self, view: CandidateView, context: Mapping[str, Any]) -> float:
        return self.value

    def predict_performance(self, view: CandidateView, context: Mapping[str, Any]) -> float:
        return self.value


__all__ = ["CapacityEstimator", "PerformancePredictor", "ConstantEstimator"]
