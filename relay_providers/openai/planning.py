"""Model table and request planning for the OpenAI adapter.

Model choice is a short ordered list of heuristics over the request's
urgency/budget hints and its :class:`TaskProfile`; the first match wins.
"""

from __future__ import annotations

from typing import Any, List, Optional, Sequence

from ..base.adapter_parts import TaskProfile, shrink_for_retry
from ..base.models import CallPlan, ModelSpec, RequestContext

OPENAI_MODELS = {
    "gpt-4o": ModelSpec("gpt-4o", 128000, 4096, 0.005, 0.015, ("vision", "reasoning", "code", "analysis")),
    "gpt-4o-mini": ModelSpec("gpt-4o-mini", 128000, 16384, 0.00015, 0.0006, ("speed", "chat", "simple_tasks")),
    "gpt-4-turbo": ModelSpec("gpt-4-turbo", 128000, 4096, 0.01, 0.03, ("reasoning", "code", "analysis")),
    "gpt-3.5-turbo": ModelSpec("gpt-3.5-turbo", 16385, 4096, 0.0005, 0.0015, ("speed", "simple_tasks", "chat")),
}

FAST_MODEL = "gpt-4o-mini"
FLAGSHIP_MODEL = "gpt-4o"
ECONOMY_MODEL = "gpt-3.5-turbo"


def _as_stop_list(value: Any) -> Optional[List[str]]:
    if not value:
        return None
    if isinstance(value, str):
        return [value]
    return [str(v) for v in value]


class OpenAIPlanningMixin:
    """Mixin turning an optimized request into a :class:`CallPlan`.

    Consumers must be :class:`ProviderAdapter` subclasses (``config``,
    ``descriptor``, ``profile`` and ``sampling_temperature`` are used).
    """

    CHEAPER_MODEL = ECONOMY_MODEL
    FALLBACK_MODELS = ("gpt-4o-mini", "gpt-3.5-turbo", "gpt-4o")

    def select_model(self, request: RequestContext, profile: TaskProfile) -> str:
        if request.urgency == "high" and request.budget != "premium":
            return FAST_MODEL
        if profile.requires_vision:
            return FLAGSHIP_MODEL
        if profile.requires_deep_reasoning or profile.is_complex:
            return FLAGSHIP_MODEL
        if profile.is_simple and request.budget == "economy":
            return ECONOMY_MODEL
        if profile.is_code or profile.requires_analysis:
            return FLAGSHIP_MODEL
        return self.model

    def build_plan(self, request: RequestContext) -> CallPlan:
        profile = self.profile(request)
        model = self.select_model(request, profile)
        extra = {}
        if request.option("logit_bias"):
            extra["logit_bias"] = dict(request.option("logit_bias"))
        return CallPlan(
            model=model,
            system_prompt=request.system_prompt,
            user_message=request.user_message,
            max_tokens=self.output_token_limit(model, request.option("max_tokens")),
            temperature=self.sampling_temperature(request, profile),
            top_p=float(request.option("top_p", self.config.top_p)),
            frequency_penalty=float(request.option("frequency_penalty", self.config.frequency_penalty)),
            presence_penalty=float(request.option("presence_penalty", self.config.presence_penalty)),
            functions=request.option("functions"),
            function_call=request.option("function_call"),
            stop=_as_stop_list(request.option("stop")),
            task_kind=profile.kind,
            extra=extra,
        )

    def cheaper_model(self, plan: CallPlan) -> Optional[str]:
        return self.CHEAPER_MODEL

    def fallback_models(self) -> Sequence[str]:
        return self.FALLBACK_MODELS

    def compress_plan(self, plan: CallPlan) -> Optional[CallPlan]:
        spec = self.descriptor.model(plan.model) or OPENAI_MODELS[ECONOMY_MODEL]
        shorter = shrink_for_retry(plan.system_prompt, plan.user_message, spec.context_window)
        return plan.with_user_message(shorter) if shorter is not None else None


__all__ = ["OPENAI_MODELS", "OpenAIPlanningMixin"]
