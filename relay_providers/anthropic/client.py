"""Claude provider adapter (Anthropic Messages API over HTTP).

Summary:
- Model choice between sonnet, opus and haiku from request heuristics
- Top-level ``system`` prompt, ``stop_sequences`` and a pinned
  ``anthropic-version`` header
- Streaming via typed SSE events (``content_block_delta`` ... ``message_stop``)

Gates, recovery, caching and metrics come from :class:`ProviderAdapter`.
"""

from __future__ import annotations

from ..base.adapter import CAPABILITY_TOKEN, ProviderAdapter
from ..base.dto import normalize_aliases
from ..base.models import ProviderDescriptor
from ..config.defaults import ANTHROPIC_DEFAULT_BASE_URL, ANTHROPIC_DEFAULT_MAX_TOKENS, ANTHROPIC_DEFAULT_TOP_P

from .chat_helpers import ClaudeChatMixin
from .helpers import CLAUDE_MODELS, SONNET, ClaudeCommonMixin
from .stream_helpers import ClaudeStreamingMixin

CLAUDE_DESCRIPTOR = ProviderDescriptor(
    name="claude",
    default_model=SONNET,
    supports_streaming=True,
    supports_function_calling=False,
    supports_vision=True,
    context_window=200000,
    models=CLAUDE_MODELS,
    strengths=("chat", "file_analysis", "analysis", "code_generation", "creative_writing", "summarization"),
)


class ClaudeAdapter(ClaudeCommonMixin, ClaudeChatMixin, ClaudeStreamingMixin, ProviderAdapter):
    """Anthropic Claude adapter.

    Parameters:
        api_key: Anthropic API key (sent as ``x-api-key``).
        config: Adapter configuration; ``max_tokens`` defaults to 8192 and
            ``top_p`` to 0.9 unless overridden.
    """

    provider_name = "claude"
    default_base_url = ANTHROPIC_DEFAULT_BASE_URL
    TEMPERATURE_SHIFTS = {"creative": 0.2, "code": -0.2}

    def __init__(self, api_key, config=None, **kwargs) -> None:
        if config is None or isinstance(config, dict):
            config = {
                "max_tokens": ANTHROPIC_DEFAULT_MAX_TOKENS,
                "top_p": ANTHROPIC_DEFAULT_TOP_P,
                **normalize_aliases(config or {}),
            }
        super().__init__(api_key, config, **kwargs)

    @property
    def descriptor(self) -> ProviderDescriptor:
        return CLAUDE_DESCRIPTOR

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
        reply = self._probe_send("Summarize this in one word: " + "Test " * 100, 20)
        return bool(reply.text.strip())


__all__ = ["ClaudeAdapter", "CLAUDE_DESCRIPTOR"]
