"""OpenAI provider adapter (chat completions over HTTP).

Summary:
- Model choice and temperature adaptation from request heuristics
  (``planning.py``)
- Unary and SSE streaming calls via the shared ``httpx`` client pool with
  centralized timeouts (``wire.py``)
- Gates, recovery, caching and metrics come from :class:`ProviderAdapter`

Key validation runs three probes: a ping, an instruction-following check and
a function-calling round trip.
"""

from __future__ import annotations

from ..base.adapter import CAPABILITY_TOKEN, ProviderAdapter
from ..base.models import ProviderDescriptor
from ..config.defaults import OPENAI_DEFAULT_BASE_URL, OPENAI_DEFAULT_MODEL

from .planning import OPENAI_MODELS, OpenAIPlanningMixin
from .wire import OpenAIWireMixin

OPENAI_DESCRIPTOR = ProviderDescriptor(
    name="openai",
    default_model=OPENAI_DEFAULT_MODEL,
    supports_streaming=True,
    supports_function_calling=True,
    supports_vision=True,
    context_window=max(spec.context_window for spec in OPENAI_MODELS.values()),
    models=OPENAI_MODELS,
    strengths=("chat", "quick_chat", "code_generation", "analysis", "creative_writing", "function_calling"),
)

_TIME_FUNCTION = {
    "name": "get_current_time",
    "description": "Get the current time",
    "parameters": {"type": "object", "properties": {}},
}


class OpenAIAdapter(OpenAIPlanningMixin, OpenAIWireMixin, ProviderAdapter):
    """OpenAI chat completions adapter.

    Parameters:
        api_key: OpenAI API key (sent as a bearer token).
        config: Adapter configuration; ``base_url`` defaults to
            ``https://api.openai.com/v1``.
    """

    provider_name = "openai"
    default_base_url = OPENAI_DEFAULT_BASE_URL
    TEMPERATURE_SHIFTS = {"creative": 0.3, "code": -0.3, "analysis": -0.2}

    @property
    def descriptor(self) -> ProviderDescriptor:
        return OPENAI_DESCRIPTOR

    def probe_ping(self) -> bool:
        self._probe_send("Hello", 10)
        return True

    def probe_capability(self) -> bool:
        reply = self._probe_send(
            f'Respond with exactly "{CAPABILITY_TOKEN}" to confirm your functionality.',
            50,
            temperature=0.1,
        )
        return CAPABILITY_TOKEN in reply.text

    def probe_limits(self) -> bool:
        reply = self._probe_send("What is the current time?", 50, functions=[_TIME_FUNCTION])
        return bool(reply.text)


__all__ = ["OpenAIAdapter", "OPENAI_DESCRIPTOR"]
