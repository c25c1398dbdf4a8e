"""
Token estimation and context compression helpers.
"""
from __future__ import annotations

import math
import re
from typing import Optional

_ASCII_WORDISH = re.compile(r"[A-Za-z0-9\s]")

TRUNCATION_MARKER = "\n\n[... content truncated to fit the context window ...]\n\n"


def estimate_tokens(text: str, other_chars_per_token: float = 2.0) -> int:
    """Rough token count: 4 characters per token for ASCII, fewer for other scripts."""
    if not text:
        return 0
    ascii_chars = len(_ASCII_WORDISH.findall(text))
    other = len(text) - ascii_chars
    return math.ceil(ascii_chars / 4 + other / other_chars_per_token)


def truncate_middle(text: str, max_chars: int) -> str:
    """Keep the head and tail of ``text`` so it fits in ``max_chars``.

    The head gets two thirds of the budget: instructions usually open a
    message, while the question being asked usually closes it.
    """
    if max_chars <= 0:
        return ""
    if len(text) <= max_chars:
        return text
    budget = max_chars - len(TRUNCATION_MARKER)
    if budget <= 0:
        return text[:max_chars]
    head = (budget * 2) // 3
    tail = budget - head
    return text[:head] + TRUNCATION_MARKER + (text[-tail:] if tail else "")


def compress_to_window(system_prompt: str, user_message: str, context_window: int, fraction: float = 0.8) -> str:
    """Return ``user_message`` shortened so the prompt fits ``fraction`` of the window.

    Returns the message unchanged when it already fits. Character budget is
    derived from the token budget at 4 characters per token.
    """
    budget_tokens = int(context_window * fraction) - estimate_tokens(system_prompt)
    if estimate_tokens(user_message) <= budget_tokens:
        return user_message
    return truncate_middle(user_message, max(0, budget_tokens) * 4)


def shrink_for_retry(system_prompt: str, user_message: str, context_window: int) -> Optional[str]:
    """Shorter user message for a context-length retry, or ``None`` if it cannot shrink.

    The vendor already rejected the request, so when the estimate claims the
    message fits, it is halved anyway.
    """
    compressed = compress_to_window(system_prompt, user_message, context_window)
    if len(compressed) >= len(user_message):
        compressed = truncate_middle(user_message, len(user_message) // 2)
    return compressed if len(compressed) < len(user_message) else None


__all__ = [
    "estimate_tokens",
    "truncate_middle",
    "compress_to_window",
    "shrink_for_retry",
    "TRUNCATION_MARKER",
]
