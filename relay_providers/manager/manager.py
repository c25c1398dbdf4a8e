"""Provider manager: registration, selection, fallback and monitoring.

The manager is constructed explicitly and injected where needed; there is no
module-level instance. A call flows as:

    select (rules / score, healthy first) -> adapter.chat
    -> on failure (any kind but validation): re-select once excluding the
       failed provider and retry there
    -> surface the enhanced error

Selection never fails while anything is registered: when no candidate comes
out of the engine the emergency fallback returns a healthy provider, the
default, or the first registered one.
"""
from __future__ import annotations

import logging
import time
from threading import RLock
from typing import Any, Callable, Dict, List, Mapping, Optional, TypeVar

from ..base.adapter import ProviderAdapter
from ..base.errors import (
    ErrorKind,
    NoProviderAvailableError,
    ProviderError,
    ValidationError,
    classify_exception,
    new_request_id,
)
from ..base.factory import ProviderFactory
from ..base.logging import LogContext, get_logger, log_event, normalized_log_event
from ..base.routing import SelectionEngine, SelectionRule
from ..base.streaming import ChunkCallback
from ..config.defaults import FAST_VALIDATION_MS
from .health import HealthMonitor
from .registry import ProviderRegistry, ProviderState

T = TypeVar("T")

AdapterFactory = Callable[[str, Optional[str], Optional[Mapping[str, Any]]], ProviderAdapter]

# Failures that say nothing about the vendor's health.
_NON_HEALTH_KINDS = (ErrorKind.VALIDATION, ErrorKind.CIRCUIT_OPEN)


class ProviderManager:
    """Registry of adapters with selection, fallback and health monitoring.

    Parameters:
        adapter_factory: ``(name, api_key, config) -> ProviderAdapter``;
            defaults to :meth:`ProviderFactory.create`.
        selection: Selection engine (default weights and rules).
        monitor: Health monitor; built over this manager's registry when omitted.
        validate_keys: Run ``validate_api_key`` before registering.
        fast_validation_ms: Validation latency under which a streaming-capable
            provider may take over as default.
    """

    def __init__(
        self,
        *,
        adapter_factory: Optional[AdapterFactory] = None,
        selection: Optional[SelectionEngine] = None,
        monitor: Optional[HealthMonitor] = None,
        clock: Callable[[], float] = time.monotonic,
        validate_keys: bool = True,
        fast_validation_ms: float = FAST_VALIDATION_MS,
    ) -> None:
        self._factory: AdapterFactory = adapter_factory or ProviderFactory.create
        self._clock = clock
        self.registry = ProviderRegistry()
        self.selection = selection or SelectionEngine()
        self.monitor = monitor or HealthMonitor(self.registry, clock=clock)
        self.validate_keys = validate_keys
        self.fast_validation_ms = fast_validation_ms
        self.default_provider: Optional[str] = None
        self._lock = RLock()
        self._stats = {
            "requests": 0,
            "successes": 0,
            "failures": 0,
            "failover_events": 0,
            "emergency_fallbacks": 0,
            "total_latency_ms": 0.0,
        }
        self._logger = get_logger("providers.manager")

    # ------------------------------------------------------------------ #
    # Registration
    # ------------------------------------------------------------------ #
    def add_provider(
        self,
        name: str,
        api_key: Optional[str],
        config: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Build, validate and register an adapter.

        Registration happens only when key validation passes; a failed
        validation raises an ``auth`` :class:`ProviderError`. Registering an
        existing name replaces the previous adapter (which is cleaned up).
        """
        key = (name or "").lower().strip()
        if not key:
            raise ValidationError("provider name must be a non-empty string", provider="manager")
        adapter = self._factory(key, api_key, config)
        if self.validate_keys and not adapter.validate_api_key():
            adapter.cleanup()
            log_event(self._logger, "provider.rejected", level=logging.WARNING, provider=key)
            raise ProviderError(
                kind=ErrorKind.AUTH,
                message=f"API key validation failed for provider '{key}'",
                provider=key,
            )
        state = ProviderState(
            name=key,
            adapter=adapter,
            descriptor=adapter.descriptor,
            order=self.registry.next_order(),
            validation_latency_ms=adapter.validation_latency_ms,
        )
        previous = self.registry.add(state)
        if previous is not None and previous.adapter is not adapter:
            previous.adapter.cleanup()
        self._consider_default(state)
        log_event(
            self._logger,
            "provider.added",
            provider=key,
            replaced=previous is not None,
            validation_latency_ms=state.validation_latency_ms,
            default=self.default_provider == key,
        )
        return {
            "success": True,
            "provider": key,
            "descriptor": state.descriptor.to_dict(),
            "validation_latency_ms": state.validation_latency_ms,
            "is_default": self.default_provider == key,
        }

    def _consider_default(self, state: ProviderState) -> None:
        with self._lock:
            current = self.registry.get(self.default_provider) if self.default_provider else None
            if current is None or current is state:
                self.default_provider = state.name
                return
            latency = state.validation_latency_ms
            fast = latency is not None and latency < self.fast_validation_ms
            if not (fast and state.descriptor.supports_streaming):
                return
            current_latency = current.validation_latency_ms
            if current_latency is not None and current_latency <= latency:
                return
            log_event(
                self._logger,
                "provider.default_changed",
                provider=state.name,
                previous=current.name,
                validation_latency_ms=latency,
            )
            self.default_provider = state.name

    def remove_provider(self, name: str) -> bool:
        """Deregister ``name``; returns ``False`` when it was not registered."""
        key = (name or "").lower().strip()
        state = self.registry.remove(key)
        if state is None:
            return False
        state.adapter.cleanup()
        with self._lock:
            if self.default_provider == key:
                remaining = self.registry.names()
                self.default_provider = remaining[0] if remaining else None
        log_event(self._logger, "provider.removed", provider=key, default=self.default_provider)
        return True

    def set_default_provider(self, name: str) -> None:
        key = (name or "").lower().strip()
        if key not in self.registry:
            raise ValidationError(f"provider '{name}' is not registered", provider="manager")
        with self._lock:
            self.default_provider = key
        log_event(self._logger, "provider.default_set", provider=key)

    def add_selection_rule(self, task_type: str, rule: SelectionRule) -> None:
        self.selection.add_rule(task_type, rule)

    # ------------------------------------------------------------------ #
    # Selection
    # ------------------------------------------------------------------ #
    def select_provider(self, task_type: str = "chat", context: Optional[Mapping[str, Any]] = None) -> ProviderAdapter:
        return self._select_state(task_type, context).adapter

    def _select_state(self, task_type: str, context: Optional[Mapping[str, Any]]) -> ProviderState:
        states = self.registry.states()
        if not states:
            raise NoProviderAvailableError()
        try:
            chosen = self.selection.select([s.view() for s in states], task_type, context)
        except Exception as exc:  # noqa: BLE001 - custom rules may fail; emergency fallback below
            log_event(
                self._logger,
                "selection.failed",
                level=logging.WARNING,
                task_type=task_type,
                error_code=classify_exception(exc).value,
                error=str(exc)[:300],
            )
            chosen = None
        state = self.registry.get(chosen.name) if chosen is not None else None
        return state if state is not None else self._emergency_fallback()

    def _emergency_fallback(self) -> ProviderState:
        states = self.registry.states()
        if not states:
            raise NoProviderAvailableError()
        with self._lock:
            self._stats["emergency_fallbacks"] += 1
            default = self.registry.get(self.default_provider) if self.default_provider else None
        state = next((s for s in states if s.view().healthy), None) or default or states[0]
        log_event(self._logger, "selection.emergency_fallback", level=logging.WARNING, provider=state.name)
        return state

    def _alternate(self, failed: str, task_type: str, context: Optional[Mapping[str, Any]]) -> Optional[ProviderState]:
        views = [s.view() for s in self.registry.states()]
        chosen = self.selection.select([v for v in views if v.healthy], task_type, context, exclude=(failed,))
        return self.registry.get(chosen.name) if chosen is not None else None

    # ------------------------------------------------------------------ #
    # Calls
    # ------------------------------------------------------------------ #
    def chat(
        self,
        system_prompt: str,
        user_message: str,
        task_type: str = "chat",
        context: Optional[Mapping[str, Any]] = None,
    ) -> str:
        return self._execute(
            task_type,
            context,
            lambda adapter: adapter.chat(system_prompt, user_message, context, task_type=task_type),
        )

    def chat_stream(
        self,
        system_prompt: str,
        user_message: str,
        on_chunk: ChunkCallback,
        task_type: str = "chat",
        context: Optional[Mapping[str, Any]] = None,
    ) -> str:
        """Streamed variant of :meth:`chat`.

        The manager-level fallback only runs when no chunk reached
        ``on_chunk`` from the failed provider.
        """
        if not callable(on_chunk):
            raise ValidationError("on_chunk must be callable", provider="manager")
        delivered = {"count": 0}

        def relay(chunk: str) -> None:
            delivered["count"] += 1
            on_chunk(chunk)

        return self._execute(
            task_type,
            context,
            lambda adapter: adapter.chat_stream(system_prompt, user_message, relay, context, task_type=task_type),
            can_fallback=lambda: delivered["count"] == 0,
        )

    def _execute(
        self,
        task_type: str,
        context: Optional[Mapping[str, Any]],
        call: Callable[[ProviderAdapter], T],
        can_fallback: Callable[[], bool] = lambda: True,
    ) -> T:
        request_id = new_request_id("manager")
        state = self._select_state(task_type, context)
        ctx = LogContext(provider=state.name, request_id=request_id, task_type=task_type)
        started = self._clock()
        with self._lock:
            self._stats["requests"] += 1
        try:
            result = call(state.adapter)
        except ProviderError as error:
            self._record_failure(state, error)
            alternate = None
            if error.kind is not ErrorKind.VALIDATION and can_fallback():
                alternate = self._alternate(state.name, task_type, context)
            if alternate is None:
                self._finish(ctx, started, ok=False, error=error)
                raise
            normalized_log_event(
                self._logger,
                "manager.fallback",
                ctx,
                phase="fallback",
                attempt=2,
                error_code=error.kind.value,
                level=logging.WARNING,
                fallback_provider=alternate.name,
            )
            with self._lock:
                self._stats["failover_events"] += 1
            try:
                result = call(alternate.adapter)
            except ProviderError as second:
                self._record_failure(alternate, second)
                self._finish(ctx, started, ok=False, error=second)
                raise second from error
            self._record_success(alternate)
            self._finish(ctx, started, ok=True, served_by=alternate.name)
            return result
        self._record_success(state)
        self._finish(ctx, started, ok=True, served_by=state.name)
        return result

    def _record_failure(self, state: ProviderState, error: ProviderError) -> None:
        if error.kind in _NON_HEALTH_KINDS:
            return
        threshold = state.adapter.config.circuit_breaker_threshold
        with state.lock:
            state.health.record_failure(self._clock(), error.kind.value, threshold)

    def _record_success(self, state: ProviderState) -> None:
        with state.lock:
            state.health.record_success(self._clock())
        self.monitor.evaluate(state)

    def _finish(
        self,
        ctx: LogContext,
        started: float,
        *,
        ok: bool,
        served_by: Optional[str] = None,
        error: Optional[ProviderError] = None,
    ) -> None:
        latency_ms = (self._clock() - started) * 1000.0
        with self._lock:
            self._stats["successes" if ok else "failures"] += 1
            self._stats["total_latency_ms"] += latency_ms
        normalized_log_event(
            self._logger,
            "manager.chat",
            ctx,
            phase="finalize",
            error_code=error.kind.value if error is not None else None,
            level=logging.INFO if ok else logging.WARNING,
            ok=ok,
            served_by=served_by,
            latency_ms=round(latency_ms, 2),
        )

    # ------------------------------------------------------------------ #
    # Introspection & lifecycle
    # ------------------------------------------------------------------ #
    def get_active_providers(self) -> List[str]:
        return [s.name for s in self.registry.states() if s.view().healthy]

    def get_providers(self) -> Dict[str, Dict[str, Any]]:
        result: Dict[str, Dict[str, Any]] = {}
        for state in self.registry.states():
            view = state.view()
            info = state.adapter.get_info()
            info["health"] = {**state.health_dict(), "is_healthy": view.healthy, "breaker_open": view.breaker_open}
            info["load"] = {"in_flight": view.in_flight, "percent": view.load}
            info["is_default"] = state.name == self.default_provider
            result[state.name] = info
        return result

    def get_system_status(self) -> Dict[str, Any]:
        states = self.registry.states()
        healthy = [s.name for s in states if s.view().healthy]
        with self._lock:
            stats = dict(self._stats)
            default = self.default_provider
        finished = stats["successes"] + stats["failures"]
        return {
            "providers": {
                "total": len(states),
                "healthy": len(healthy),
                "names": [s.name for s in states],
                "active": healthy,
            },
            "default_provider": default,
            "requests": stats["requests"],
            "successes": stats["successes"],
            "failures": stats["failures"],
            "success_rate": 100.0 if finished == 0 else stats["successes"] / finished * 100.0,
            "average_latency_ms": stats["total_latency_ms"] / finished if finished else 0.0,
            "failover_events": stats["failover_events"],
            "emergency_fallbacks": stats["emergency_fallbacks"],
            "emergency_fallback_available": bool(states),
            "monitoring": self.monitor.running,
            "last_aggregate": self.monitor.last_aggregate,
        }

    def start_monitoring(self) -> None:
        self.monitor.start()

    def stop_monitoring(self) -> None:
        self.monitor.stop()

    def cleanup(self) -> None:
        """Stop monitoring and clean up and forget every adapter."""
        self.monitor.stop()
        for state in self.registry.clear():
            state.adapter.cleanup()
        with self._lock:
            self.default_provider = None
        log_event(self._logger, "manager.cleanup")

    def __enter__(self) -> "ProviderManager":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.cleanup()


__all__ = ["ProviderManager", "AdapterFactory"]
