"""Common helpers for the Claude adapter.

Holds the model table, request planning (model choice, sampling) and the
Messages API envelope shared by the unary and streaming paths.

Notes:
    Consumers must be :class:`ProviderAdapter` subclasses; ``config``,
    ``api_key``, ``descriptor`` and ``profile`` are used.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from ..base.adapter_parts import TaskProfile, shrink_for_retry
from ..base.models import CallPlan, ModelSpec, RequestContext
from ..config.defaults import ANTHROPIC_API_VERSION

SONNET = "claude-3-5-sonnet-20241022"
OPUS = "claude-3-opus-20240229"
HAIKU = "claude-3-haiku-20240307"

CLAUDE_MODELS = {
    SONNET: ModelSpec(SONNET, 200000, 8192, 0.003, 0.015, ("coding", "analysis", "reasoning", "writing")),
    OPUS: ModelSpec(OPUS, 200000, 4096, 0.015, 0.075, ("complex_reasoning", "creative_writing", "research")),
    HAIKU: ModelSpec(HAIKU, 200000, 4096, 0.00025, 0.00125, ("speed", "simple_tasks", "summarization")),
}

MESSAGES_PATH = "/messages"


class ClaudeCommonMixin:
    """Mixin offering model choice, plan building and envelope builders."""

    CHEAPER_MODEL = HAIKU
    FALLBACK_MODELS = (SONNET, HAIKU)

    def select_model(self, request: RequestContext, profile: TaskProfile) -> str:
        if request.urgency == "high" and request.budget != "premium":
            return HAIKU
        if profile.requires_deep_reasoning or profile.is_creative:
            return OPUS
        if profile.is_code or profile.requires_analysis:
            return SONNET
        return self.model

    def build_plan(self, request: RequestContext) -> CallPlan:
        profile = self.profile(request)
        model = self.select_model(request, profile)
        stop = request.option("stop_sequences") or request.option("stop")
        return CallPlan(
            model=model,
            system_prompt=request.system_prompt,
            user_message=request.user_message,
            max_tokens=self.output_token_limit(model, request.option("max_tokens")),
            temperature=self.sampling_temperature(request, profile),
            top_p=float(request.option("top_p", self.config.top_p)),
            stop=[stop] if isinstance(stop, str) else (list(stop) if stop else None),
            task_kind=profile.kind,
        )

    def cheaper_model(self, plan: CallPlan) -> Optional[str]:
        return self.CHEAPER_MODEL

    def fallback_models(self) -> Sequence[str]:
        return self.FALLBACK_MODELS

    def compress_plan(self, plan: CallPlan) -> Optional[CallPlan]:
        spec = self.descriptor.model(plan.model) or CLAUDE_MODELS[SONNET]
        shorter = shrink_for_retry(plan.system_prompt, plan.user_message, spec.context_window)
        return plan.with_user_message(shorter) if shorter is not None else None

    def _headers(self) -> Dict[str, str]:
        headers: Dict[str, str] = {
            "Content-Type": "application/json",
            "anthropic-version": ANTHROPIC_API_VERSION,
            **self.config.headers,
        }
        if self.api_key:
            headers["x-api-key"] = self.api_key
        return headers

    def _payload(self, plan: CallPlan, stream: bool = False) -> Dict[str, Any]:
        messages: List[Dict[str, str]] = [{"role": "user", "content": plan.user_message}]
        payload: Dict[str, Any] = {
            "model": plan.model,
            "max_tokens": plan.max_tokens,
            "temperature": plan.temperature,
            "top_p": plan.top_p,
            "messages": messages,
        }
        if plan.system_prompt:
            payload["system"] = plan.system_prompt
        if plan.stop:
            payload["stop_sequences"] = list(plan.stop)
        if stream:
            payload["stream"] = True
        return payload


__all__ = ["ClaudeCommonMixin", "CLAUDE_MODELS", "SONNET", "OPUS", "HAIKU", "MESSAGES_PATH"]
