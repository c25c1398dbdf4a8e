"""
Result of one vendor exchange, before the adapter's success accounting.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class VendorReply:
    """Text plus usage reported by the vendor.

    Attributes:
        text: Final response text (function calls arrive as a JSON string).
        model: Model that actually served the call.
        prompt_tokens: Vendor-reported prompt tokens (0 when not reported).
        completion_tokens: Vendor-reported completion tokens.
        finish_reason: Vendor stop reason, if any.
    """

    text: str
    model: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    finish_reason: Optional[str] = None

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


__all__ = ["VendorReply"]
