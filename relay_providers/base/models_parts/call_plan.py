"""
Vendor-neutral description of the request an adapter is about to send.

Plans are produced by ``ProviderAdapter.build_plan`` after optimization and
rewritten (never mutated) by the recovery hooks: a cheaper model, a fallback
model, or a compressed user message.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class CallPlan:
    """Everything needed to build one vendor request envelope."""

    model: str
    system_prompt: str
    user_message: str
    max_tokens: int
    temperature: float
    top_p: float = 1.0
    frequency_penalty: float = 0.0
    presence_penalty: float = 0.0
    functions: Optional[List[Dict[str, Any]]] = None
    function_call: Any = None
    stop: Optional[List[str]] = None
    task_kind: str = "general"
    extra: Dict[str, Any] = field(default_factory=dict)

    def with_model(self, model: str, max_tokens: Optional[int] = None) -> "CallPlan":
        return replace(self, model=model, max_tokens=max_tokens or self.max_tokens)

    def with_user_message(self, user_message: str) -> "CallPlan":
        return replace(self, user_message=user_message)


__all__ = ["CallPlan"]
