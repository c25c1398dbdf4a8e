"""Provider selection engine.

``select`` narrows the registry snapshot to usable candidates, applies a
task-specific rule when one is registered, and otherwise ranks candidates by
the weighted score ``health * 0.3 + performance * 0.4 + suitability * 0.3``.
Selection is a pure function of the snapshot (round robin aside): equal
inputs give the same provider, and ties resolve to registration order.
"""
from __future__ import annotations

import logging
from threading import RLock
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..errors import ValidationError
from ..logging import get_logger, log_event
from .candidate import CandidateView
from .estimators import CapacityEstimator, PerformancePredictor
from .scoring import LATENCY_BUDGET_MS, ScoreWeights, combined_score
from .strategies import (
    LeastLoadedStrategy,
    PredictiveStrategy,
    RoundRobinStrategy,
    SelectionStrategy,
    WeightedPerformanceStrategy,
)

SelectionRule = Callable[[Mapping[str, Any], Sequence[CandidateView]], Optional[str]]

PREFERRED_FILE_ANALYSIS_PROVIDER = "claude"

_logger = get_logger("providers.selection")


class SelectionEngine:
    """Scores candidates and applies per-task selection rules.

    Parameters:
        weights: Weights of the default score.
        latency_budget_ms: Latency at which the latency part of the
            performance score reaches zero.
        predictor / capacity: Estimators for the predictive strategy.
    """

    def __init__(
        self,
        weights: Optional[ScoreWeights] = None,
        latency_budget_ms: float = LATENCY_BUDGET_MS,
        predictor: Optional[PerformancePredictor] = None,
        capacity: Optional[CapacityEstimator] = None,
    ) -> None:
        self.weights = weights or ScoreWeights()
        self.latency_budget_ms = latency_budget_ms
        self.strategies: Dict[str, SelectionStrategy] = {}
        for strategy in (
            RoundRobinStrategy(),
            WeightedPerformanceStrategy(latency_budget_ms),
            LeastLoadedStrategy(),
            PredictiveStrategy(predictor, capacity),
        ):
            self.strategies[strategy.name] = strategy
        self._rules: Dict[str, SelectionRule] = {}
        self._lock = RLock()
        self._install_default_rules()

    # ---- rules -------------------------------------------------------------
    def _install_default_rules(self) -> None:
        self._rules["file_analysis"] = self._file_analysis_rule
        self._rules["code_generation"] = self._strategy_rule("predictive")
        self._rules["quick_chat"] = self._strategy_rule("least_loaded")

    def _file_analysis_rule(self, context: Mapping[str, Any], candidates: Sequence[CandidateView]) -> Optional[str]:
        healthy = [c for c in candidates if c.healthy]
        if any(c.name == PREFERRED_FILE_ANALYSIS_PROVIDER for c in healthy):
            return PREFERRED_FILE_ANALYSIS_PROVIDER
        chosen = self.strategies["weighted_performance"].choose(healthy or candidates, context)
        return chosen.name if chosen is not None else None

    def _strategy_rule(self, name: str) -> SelectionRule:
        def rule(context: Mapping[str, Any], candidates: Sequence[CandidateView]) -> Optional[str]:
            healthy = [c for c in candidates if c.healthy]
            chosen = self.strategies[name].choose(healthy or candidates, context)
            return chosen.name if chosen is not None else None

        return rule

    def add_rule(self, task_type: str, rule: SelectionRule) -> None:
        """Register (or replace) the rule used for ``task_type``."""
        if not callable(rule):
            raise ValidationError("selection rule must be callable", provider="manager")
        with self._lock:
            self._rules[task_type] = rule
        log_event(_logger, "selection.rule_added", task_type=task_type)

    def rule_for(self, task_type: str) -> Optional[SelectionRule]:
        with self._lock:
            return self._rules.get(task_type)

    # ---- scoring -----------------------------------------------------------
    def score(self, view: CandidateView, task_type: str) -> float:
        return combined_score(view, task_type, self.weights, self.latency_budget_ms)

    def rank(self, candidates: Iterable[CandidateView], task_type: str) -> List[Tuple[CandidateView, float]]:
        """Candidates with their scores, best first (stable by registration order)."""
        scored = [(view, self.score(view, task_type)) for view in candidates]
        scored.sort(key=lambda item: (-item[1], item[0].order))
        return scored

    # ---- selection ---------------------------------------------------------
    def select(
        self,
        candidates: Sequence[CandidateView],
        task_type: str = "chat",
        context: Optional[Mapping[str, Any]] = None,
        exclude: Iterable[str] = (),
    ) -> Optional[CandidateView]:
        """Pick the best candidate, or ``None`` when nothing is left after ``exclude``.

        Unhealthy candidates are skipped unless no healthy one remains.
        """
        excluded = set(exclude)
        pool = sorted((c for c in candidates if c.name not in excluded), key=lambda c: c.order)
        if not pool:
            return None
        usable = [c for c in pool if c.healthy] or pool
        ctx = dict(context or {})

        rule = self.rule_for(task_type)
        if rule is not None:
            chosen_name = rule(ctx, usable)
            chosen = next((c for c in usable if c.name == chosen_name), None)
            if chosen is not None:
                log_event(_logger, "selection.rule", task_type=task_type, provider=chosen.name)
                return chosen
            log_event(
                _logger,
                "selection.rule_ignored",
                level=logging.DEBUG,
                task_type=task_type,
                returned=chosen_name,
            )

        view, score = self.rank(usable, task_type)[0]
        log_event(_logger, "selection.scored", task_type=task_type, provider=view.name, score=round(score, 2))
        return view


__all__ = ["SelectionEngine", "SelectionRule"]
