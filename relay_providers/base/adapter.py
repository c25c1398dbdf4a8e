"""Provider adapter contract and the shared call pipeline.

Every vendor adapter subclasses :class:`ProviderAdapter` and supplies only the
vendor-specific pieces: its descriptor, how a request becomes a
:class:`CallPlan`, how a plan is sent (unary and streamed), the recovery
hooks (cheaper model, fallback models, context compression) and the three
key-validation probes.

The base class owns everything else. A call walks the gates in a fixed
order:

    validate -> optimize -> rate limit -> circuit breaker -> cache
    -> vendor call -> response validation -> cache store -> metrics

A vendor failure is classified and gets at most one recovery attempt chosen
from the recovery table; if that fails too, the breaker and metrics record
the failure and the enhanced :class:`ProviderError` is raised.
"""
from __future__ import annotations

import abc
import logging
import random
import re
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from threading import RLock
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Union

import httpx

from .adapter_parts import AdapterState, TaskProfile, adapt_temperature, analyze_task, score_response_quality
from .dto import AdapterConfig
from .errors import (
    CircuitOpenError,
    ErrorKind,
    ProviderError,
    ValidationError,
    classify_exception,
    new_request_id,
    to_provider_error,
)
from .http import get_httpx_client
from .logging import LogContext, get_logger, normalized_log_event
from .models import CallPlan, ProviderDescriptor, RequestContext, VendorReply
from .resilience import RecoveryAction, ResponseCache, RetryConfig, recovery_for
from .streaming import ChunkCallback, StreamAccumulator
from .timeouts import get_timeout_config

_BLANK_RUNS = re.compile(r"\n{3,}")
_TRAILING_WS = re.compile(r"[ \t]+\n")

CAPABILITY_TOKEN = "CAPABILITY_TEST_PASSED"
MIN_VALID_PROBES = 2


class ProviderAdapter(abc.ABC):
    """Abstract vendor adapter with caching, rate limiting, breaker and recovery.

    Parameters:
        api_key: Vendor credential.
        config: :class:`AdapterConfig` or a mapping of its fields (camelCase and
            millisecond aliases accepted).
        http_client: Optional ``httpx.Client`` used instead of the shared pool
            (tests pass one backed by ``httpx.MockTransport``).
        clock / sleep / rng: Injectable time and jitter sources.
    """

    provider_name: str = "base"
    default_base_url: str = ""
    # Temperature delta applied per detected task kind.
    TEMPERATURE_SHIFTS: Mapping[str, float] = {"creative": 0.3, "code": -0.3, "analysis": -0.2}

    def __init__(
        self,
        api_key: Optional[str],
        config: Union[AdapterConfig, Mapping[str, Any], None] = None,
        *,
        http_client: Optional[httpx.Client] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        rng: Callable[[], float] = random.random,
    ) -> None:
        cfg = config if isinstance(config, AdapterConfig) else AdapterConfig(**dict(config or {}))
        if api_key:
            cfg = cfg.model_copy(update={"api_key": api_key})
        self.config = cfg
        self._http_client = http_client
        self._clock = clock
        self._sleep = sleep
        self.retry_config = RetryConfig.from_attempts(cfg.retry_attempts, rng=rng)
        self.state = AdapterState.create(self.provider_name, cfg, clock=clock, sleep=sleep)
        self.quality_threshold = cfg.quality_threshold
        self.calibrated = False
        self.validation_latency_ms: Optional[float] = None
        self._active: Dict[str, float] = {}
        self._lock = RLock()
        self._logger = get_logger(f"providers.{self.provider_name}")

    # ------------------------------------------------------------------ #
    # Vendor hooks
    # ------------------------------------------------------------------ #
    @property
    @abc.abstractmethod
    def descriptor(self) -> ProviderDescriptor:
        """Identity, capabilities and model table of this adapter."""

    @abc.abstractmethod
    def build_plan(self, request: RequestContext) -> CallPlan:
        """Choose the model and sampling parameters for an optimized request."""

    @abc.abstractmethod
    def send(self, plan: CallPlan, request_id: str) -> VendorReply:
        """Perform one unary vendor call; raise on any failure."""

    @abc.abstractmethod
    def send_stream(self, plan: CallPlan, request_id: str, accumulator: StreamAccumulator) -> VendorReply:
        """Perform one streamed vendor call, pushing every text delta to ``accumulator``."""

    @abc.abstractmethod
    def cheaper_model(self, plan: CallPlan) -> Optional[str]:
        """Model to retry with after a quota failure."""

    @abc.abstractmethod
    def fallback_models(self) -> Sequence[str]:
        """Ordered models to try after a model-not-found failure."""

    @abc.abstractmethod
    def compress_plan(self, plan: CallPlan) -> Optional[CallPlan]:
        """Plan with a shorter context after a context-length failure (``None`` if impossible)."""

    @abc.abstractmethod
    def probe_ping(self) -> bool: ...

    @abc.abstractmethod
    def probe_capability(self) -> bool: ...

    @abc.abstractmethod
    def probe_limits(self) -> bool: ...

    # ------------------------------------------------------------------ #
    # Shared accessors
    # ------------------------------------------------------------------ #
    @property
    def api_key(self) -> Optional[str]:
        return self.config.api_key

    @property
    def base_url(self) -> str:
        return (self.config.base_url or self.default_base_url).rstrip("/")

    @property
    def model(self) -> str:
        return self.config.model or self.descriptor.default_model

    @property
    def active_requests(self) -> int:
        with self._lock:
            return len(self._active)

    def _client(self, purpose: str) -> httpx.Client:
        if self._http_client is not None:
            return self._http_client
        return get_httpx_client(self.base_url, purpose)

    def _timeout(self, stream: bool = False) -> httpx.Timeout:
        cfg = get_timeout_config()
        return cfg.for_stream(self.config.timeout) if stream else cfg.for_request(self.config.timeout)

    # ------------------------------------------------------------------ #
    # Request shaping
    # ------------------------------------------------------------------ #
    def validate_request(
        self,
        system_prompt: Any,
        user_message: Any,
        context: Optional[Mapping[str, Any]] = None,
        task_type: Optional[str] = None,
    ) -> RequestContext:
        for label, value in (("system prompt", system_prompt), ("user message", user_message)):
            if not isinstance(value, str) or not value.strip():
                raise ValidationError(f"{label} must be a non-empty string", provider=self.provider_name)
        if context is not None and not isinstance(context, Mapping):
            raise ValidationError("context must be a mapping", provider=self.provider_name)
        return RequestContext.build(system_prompt, user_message, context, task_type=task_type)

    def optimize_request(self, request: RequestContext) -> RequestContext:
        """Normalize whitespace in both prompts; wording is never changed."""
        return replace(
            request,
            system_prompt=_normalize_whitespace(request.system_prompt),
            user_message=_normalize_whitespace(request.user_message),
        )

    def profile(self, request: RequestContext) -> TaskProfile:
        return analyze_task(request.system_prompt, request.user_message, request.has_images)

    def sampling_temperature(self, request: RequestContext, profile: TaskProfile) -> float:
        base = float(request.option("temperature", self.config.temperature))
        return adapt_temperature(base, profile, dict(self.TEMPERATURE_SHIFTS))

    def output_token_limit(self, model: str, requested: Optional[int] = None) -> int:
        """Smallest of the config limit, the caller's request and the model cap."""
        limit = self.config.max_tokens
        if requested:
            limit = min(limit, int(requested))
        spec = self.descriptor.model(model)
        if spec is not None:
            limit = min(limit, spec.max_output_tokens)
        return max(1, limit)

    def cache_key(self, request: RequestContext) -> str:
        return ResponseCache.make_key(
            self.provider_name, request.system_prompt, request.user_message, request.cache_material()
        )

    # ------------------------------------------------------------------ #
    # Public operations
    # ------------------------------------------------------------------ #
    def chat(
        self,
        system_prompt: str,
        user_message: str,
        context: Optional[Mapping[str, Any]] = None,
        task_type: Optional[str] = None,
    ) -> str:
        request = self.optimize_request(self.validate_request(system_prompt, user_message, context, task_type))
        return self._run(request, None)

    def chat_stream(
        self,
        system_prompt: str,
        user_message: str,
        on_chunk: ChunkCallback,
        context: Optional[Mapping[str, Any]] = None,
        task_type: Optional[str] = None,
    ) -> str:
        """Stream a reply: ``on_chunk`` receives each text delta in arrival order.

        Returns the concatenated text. Only the final text is cached; a cache
        hit is delivered as a single chunk.
        """
        if not callable(on_chunk):
            raise ValidationError("on_chunk must be callable", provider=self.provider_name)
        if not self.descriptor.supports_streaming:
            raise ValidationError("streaming is not supported by this provider", provider=self.provider_name)
        request = self.optimize_request(self.validate_request(system_prompt, user_message, context, task_type))
        return self._run(request, on_chunk)

    def _run(self, request: RequestContext, on_chunk: Optional[ChunkCallback]) -> str:
        request_id = new_request_id(self.provider_name)
        plan = self.build_plan(request)
        ctx = LogContext(
            provider=self.provider_name, model=plan.model, request_id=request_id, task_type=request.task_type
        )
        normalized_log_event(
            self._logger,
            "chat.start",
            ctx,
            phase="start",
            stream=on_chunk is not None,
            task_kind=plan.task_kind,
            max_tokens=plan.max_tokens,
            temperature=plan.temperature,
        )

        waited = self.state.rate_limiter.acquire()
        if waited:
            normalized_log_event(self._logger, "rate_limit.waited", ctx, phase="gate", waited_seconds=round(waited, 3))

        if not self.state.breaker.allow():
            remaining = self.state.breaker.remaining_cooldown()
            error = CircuitOpenError(
                f"circuit open after repeated failures, retry in {remaining:.1f}s",
                self.provider_name,
                model=plan.model,
                request_id=request_id,
            )
            self.state.metrics.record_failure(error.kind.value, started=False)
            normalized_log_event(
                self._logger, "chat.rejected", ctx, phase="gate", error_code=error.kind.value, level=logging.WARNING
            )
            raise error

        key = self.cache_key(request)
        cached = self.state.cache.get(key)
        if cached is not None:
            self.state.metrics.record_cache_hit()
            normalized_log_event(self._logger, "cache.hit", ctx, phase="gate", emitted=on_chunk is not None)
            if on_chunk is not None:
                on_chunk(cached)
            return cached

        accumulator = StreamAccumulator(on_chunk, clock=self._clock) if on_chunk is not None else None
        started = self._begin(request_id)
        try:
            try:
                reply = self._invoke(plan, request_id, accumulator, attempt=1)
            except Exception as exc:  # noqa: BLE001 - classified and re-raised by _recover
                reply = self._recover(exc, plan, request_id, ctx, started, accumulator)
            return self._complete(reply, plan, key, ctx, started, accumulator)
        finally:
            self._end(request_id)

    def _invoke(
        self,
        plan: CallPlan,
        request_id: str,
        accumulator: Optional[StreamAccumulator],
        attempt: int,
    ) -> VendorReply:
        if accumulator is None:
            reply = self.send(plan, request_id)
        else:
            reply = self.send_stream(plan, request_id, accumulator)
        if not reply.text or not reply.text.strip():
            raise ProviderError(
                kind=ErrorKind.SERVICE,
                message=f"empty response from vendor (attempt {attempt})",
                provider=self.provider_name,
                model=plan.model,
                request_id=request_id,
            )
        return reply

    # ------------------------------------------------------------------ #
    # Recovery & accounting
    # ------------------------------------------------------------------ #
    def _recover(
        self,
        exc: Exception,
        plan: CallPlan,
        request_id: str,
        ctx: LogContext,
        started: float,
        accumulator: Optional[StreamAccumulator],
    ) -> VendorReply:
        error = to_provider_error(exc, self.provider_name, model=plan.model, request_id=request_id)
        action = recovery_for(error.kind)
        emitted = accumulator is not None and accumulator.emitted
        retry_plan = None
        if action is RecoveryAction.BACKOFF_RETRY and not self.retry_config.should_retry(error, attempt=1):
            action = None
        if action is not None and not emitted:
            retry_plan = self._recovery_plan(action, plan)
        if action is None or retry_plan is None:
            raise self._fail(error, ctx, started, accumulator)

        delay = None
        if action is RecoveryAction.BACKOFF_RETRY:
            delay = self.retry_config.delay_for(self.state.breaker.consecutive_failures + 1, error)
        normalized_log_event(
            self._logger,
            "recovery.start",
            ctx,
            phase="recovery",
            attempt=2,
            error_code=error.kind.value,
            action=action.value,
            retry_model=retry_plan.model,
            delay_seconds=round(delay, 3) if delay is not None else None,
        )
        if delay:
            self._sleep(delay)
        try:
            reply = self._invoke(retry_plan, request_id, accumulator, attempt=2)
        except Exception as second:  # noqa: BLE001 - surfaced as the enhanced error
            final = to_provider_error(second, self.provider_name, model=retry_plan.model, request_id=request_id)
            raise self._fail(final, ctx, started, accumulator, recovered_from=error) from error
        normalized_log_event(
            self._logger, "recovery.success", ctx, phase="recovery", attempt=2, action=action.value, model_used=reply.model
        )
        return reply

    def _recovery_plan(self, action: RecoveryAction, plan: CallPlan) -> Optional[CallPlan]:
        if action is RecoveryAction.CHEAPER_MODEL:
            model = self.cheaper_model(plan)
            if not model or model == plan.model:
                return None
            return plan.with_model(model, self.output_token_limit(model, plan.max_tokens))
        if action is RecoveryAction.FALLBACK_MODEL:
            for model in self.fallback_models():
                if model != plan.model:
                    return plan.with_model(model, self.output_token_limit(model, plan.max_tokens))
            return None
        if action is RecoveryAction.COMPRESS_CONTEXT:
            return self.compress_plan(plan)
        return plan

    def _fail(
        self,
        error: ProviderError,
        ctx: LogContext,
        started: float,
        accumulator: Optional[StreamAccumulator],
        recovered_from: Optional[ProviderError] = None,
    ) -> ProviderError:
        latency_ms = (self._clock() - started) * 1000.0
        # Caller mistakes say nothing about vendor health.
        if error.kind is not ErrorKind.VALIDATION:
            self.state.breaker.record_failure()
        self.state.metrics.record_failure(error.kind.value, latency_ms)
        normalized_log_event(
            self._logger,
            "chat.error",
            ctx,
            phase="finalize",
            attempt=2 if recovered_from is not None else 1,
            error_code=error.kind.value,
            emitted=accumulator.emitted if accumulator is not None else None,
            level=logging.WARNING,
            error=error.message[:300],
            recovered_from=recovered_from.kind.value if recovered_from is not None else None,
            breaker_open=self.state.breaker.is_open,
        )
        return error

    def _complete(
        self,
        reply: VendorReply,
        plan: CallPlan,
        key: str,
        ctx: LogContext,
        started: float,
        accumulator: Optional[StreamAccumulator],
    ) -> str:
        text = reply.text
        latency_ms = (self._clock() - started) * 1000.0
        quality = score_response_quality(text)
        if quality / 100.0 < self.quality_threshold:
            normalized_log_event(
                self._logger,
                "response.low_quality",
                ctx,
                phase="validate",
                level=logging.WARNING,
                quality_score=quality,
                threshold=self.quality_threshold,
            )
        self.state.cache.put(key, text)
        spec = self.descriptor.model(reply.model) or self.descriptor.model(plan.model)
        cost = spec.cost(reply.prompt_tokens, reply.completion_tokens) if spec is not None else 0.0
        self.state.metrics.record_success(latency_ms, tokens=reply.total_tokens, cost=cost, quality=quality)
        self.state.breaker.record_success()
        normalized_log_event(
            self._logger,
            "chat.success",
            ctx,
            phase="finalize",
            emitted=accumulator.emitted if accumulator is not None else None,
            tokens={
                "prompt": reply.prompt_tokens,
                "completion": reply.completion_tokens,
                "total": reply.total_tokens,
            },
            latency_ms=round(latency_ms, 2),
            model_used=reply.model,
            chunks=accumulator.chunk_count if accumulator is not None else None,
            quality_score=quality,
        )
        return text

    def _begin(self, request_id: str) -> float:
        now = self._clock()
        with self._lock:
            self._active[request_id] = now
        self.state.metrics.record_start()
        return now

    def _end(self, request_id: str) -> None:
        with self._lock:
            self._active.pop(request_id, None)

    # ------------------------------------------------------------------ #
    # Key validation, health and lifecycle
    # ------------------------------------------------------------------ #
    def validate_api_key(self) -> bool:
        """Run the three probes concurrently; the key is valid if at least two pass.

        A successful validation calibrates the adapter once and records the
        validation latency used by the manager's default-provider choice.
        """
        probes = {
            "ping": self.probe_ping,
            "capability": self.probe_capability,
            "limits": self.probe_limits,
        }
        started = self._clock()
        with ThreadPoolExecutor(max_workers=len(probes), thread_name_prefix=f"{self.provider_name}-probe") as pool:
            futures = {name: pool.submit(self._run_probe, name, probe) for name, probe in probes.items()}
            results = {name: future.result() for name, future in futures.items()}
        latency_ms = (self._clock() - started) * 1000.0
        self.validation_latency_ms = latency_ms
        valid = sum(results.values()) >= MIN_VALID_PROBES
        normalized_log_event(
            self._logger,
            "key.validated",
            LogContext(provider=self.provider_name, model=self.model),
            phase="validate",
            level=logging.INFO if valid else logging.WARNING,
            valid=valid,
            probes=results,
            latency_ms=round(latency_ms, 2),
        )
        if valid and not self.calibrated:
            self.calibrate(latency_ms)
        return valid

    def _run_probe(self, name: str, probe: Callable[[], bool]) -> bool:
        try:
            return bool(probe())
        except Exception as exc:  # noqa: BLE001 - a failing probe is a negative result
            normalized_log_event(
                self._logger,
                "probe.failed",
                LogContext(provider=self.provider_name, model=self.model),
                phase="validate",
                error_code=classify_exception(exc).value,
                level=logging.WARNING,
                probe=name,
                error=str(exc)[:200],
            )
            return False

    def _probe_send(self, user_message: str, max_tokens: int, **plan_fields: Any) -> VendorReply:
        plan = CallPlan(
            model=self.model,
            system_prompt="",
            user_message=user_message,
            max_tokens=max_tokens,
            temperature=plan_fields.pop("temperature", self.config.temperature),
            **plan_fields,
        )
        return self.send(plan, new_request_id(f"{self.provider_name}_probe"))

    def calibrate(self, validation_latency_ms: float) -> None:
        """One-time calibration after the first successful key validation."""
        self.state.metrics.record_validation(validation_latency_ms)
        self.calibrated = True
        normalized_log_event(
            self._logger,
            "adapter.calibrated",
            LogContext(provider=self.provider_name, model=self.model),
            phase="validate",
            validation_latency_ms=round(validation_latency_ms, 2),
        )

    def health_check(self) -> bool:
        return self._run_probe("ping", self.probe_ping)

    def recalibrate_quality_threshold(self) -> float:
        """Move the threshold halfway toward the rolling quality mean.

        The result stays within ``[configured - 0.2, configured]``.
        """
        mean = self.state.metrics.quality_score
        if mean is None:
            return self.quality_threshold
        ceiling = self.config.quality_threshold
        floor = max(0.0, ceiling - 0.2)
        nudged = self.quality_threshold + (mean / 100.0 - self.quality_threshold) * 0.5
        self.quality_threshold = round(min(ceiling, max(floor, nudged)), 4)
        return self.quality_threshold

    def get_info(self) -> Dict[str, Any]:
        info: Dict[str, Any] = {
            "provider": self.provider_name,
            "model": self.model,
            "descriptor": self.descriptor.to_dict(),
            "config": self.config.public_dict(),
            "calibrated": self.calibrated,
            "quality_threshold": self.quality_threshold,
            "validation_latency_ms": self.validation_latency_ms,
            "active_requests": self.active_requests,
        }
        info.update(self.state.describe())
        return info

    def cleanup(self) -> None:
        """Forget in-flight bookkeeping and reset cache, window, breaker and metrics."""
        with self._lock:
            self._active.clear()
        self.state.reset()
        self.quality_threshold = self.config.quality_threshold
        normalized_log_event(
            self._logger, "adapter.cleanup", LogContext(provider=self.provider_name), phase="shutdown"
        )


def _normalize_whitespace(text: str) -> str:
    return _BLANK_RUNS.sub("\n\n", _TRAILING_WS.sub("\n", text)).strip()


__all__ = ["ProviderAdapter", "CAPABILITY_TOKEN", "MIN_VALID_PROBES"]
