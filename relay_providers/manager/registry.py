"""
Registry of providers owned by the manager.

One :class:`ProviderState` per registered name bundles the adapter (which
owns its cache, rate window, breaker and metrics), the descriptor and the
health record. The registry keeps registration order for tie-breaking.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from threading import RLock
from typing import Any, Dict, Iterator, List, Optional

from ..base.adapter import ProviderAdapter
from ..base.models import HealthRecord, ProviderDescriptor
from ..base.routing import CandidateView


@dataclass
class ProviderState:
    """Everything the manager tracks for one provider.

    ``health`` is guarded by ``lock``; the adapter's own structures carry
    their own locks.
    """

    name: str
    adapter: ProviderAdapter
    descriptor: ProviderDescriptor
    order: int
    health: HealthRecord = field(default_factory=HealthRecord)
    validation_latency_ms: Optional[float] = None
    lock: Any = field(default_factory=RLock, repr=False, compare=False)

    def view(self) -> CandidateView:
        metrics = self.adapter.state.metrics
        with self.lock:
            status = self.health.status
            failures = self.health.consecutive_failures
        return CandidateView(
            name=self.name,
            order=self.order,
            status=status,
            consecutive_failures=failures,
            breaker_open=self.adapter.state.breaker.remaining_cooldown() > 0,
            reliability=metrics.reliability,
            average_latency_ms=metrics.average_latency_ms,
            in_flight=self.adapter.active_requests,
            strengths=self.descriptor.strengths,
        )

    def health_dict(self) -> Dict[str, Any]:
        with self.lock:
            return self.health.to_dict()


class ProviderRegistry:
    """Thread-safe, insertion-ordered map of provider name to state."""

    def __init__(self) -> None:
        self._states: Dict[str, ProviderState] = {}
        self._lock = RLock()
        self._next_order = 0

    def next_order(self) -> int:
        with self._lock:
            order = self._next_order
            self._next_order += 1
            return order

    def add(self, state: ProviderState) -> Optional[ProviderState]:
        """Insert ``state``; a re-registered name keeps its original position.

        Returns the replaced state, if any.
        """
        with self._lock:
            previous = self._states.get(state.name)
            if previous is not None:
                state.order = previous.order
            self._states[state.name] = state
            return previous

    def remove(self, name: str) -> Optional[ProviderState]:
        with self._lock:
            return self._states.pop(name, None)

    def get(self, name: str) -> Optional[ProviderState]:
        with self._lock:
            return self._states.get(name)

    def states(self) -> List[ProviderState]:
        with self._lock:
            return sorted(self._states.values(), key=lambda s: s.order)

    def names(self) -> List[str]:
        return [s.name for s in self.states()]

    def clear(self) -> List[ProviderState]:
        with self._lock:
            removed = list(self._states.values())
            self._states.clear()
            return removed

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._states

    def __len__(self) -> int:
        with self._lock:
            return len(self._states)

    def __iter__(self) -> Iterator[ProviderState]:
        return iter(self.states())


__all__ = ["ProviderState", "ProviderRegistry"]
