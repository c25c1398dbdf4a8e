"""
Per-call request value object.

A :class:`RequestContext` is built once at the entry of ``chat`` /
``chat_stream`` from the caller's prompt, message and free-form context map,
and is never shared between calls.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Literal, Mapping, Optional

Urgency = Literal["low", "normal", "high"]
Budget = Literal["economy", "balanced", "premium"]

_URGENCIES = ("low", "normal", "high")
_BUDGETS = ("economy", "balanced", "premium")

# Context keys lifted into typed fields; everything else stays in ``options``.
_RESERVED = {"task_type", "taskType", "urgency", "budget"}


@dataclass(frozen=True)
class RequestContext:
    """Immutable inputs of one chat call.

    Attributes:
        system_prompt: Instructions for the model.
        user_message: The end-user message.
        task_type: Application task label (``"chat"``, ``"code_generation"``).
        urgency: Latency hint used by model selection.
        budget: Cost hint used by model selection.
        options: Read-only caller options (``functions``, ``function_call``,
            ``stop``, ``has_images``, ``max_tokens``, ``temperature``, ...).
    """

    system_prompt: str
    user_message: str
    task_type: str = "chat"
    urgency: Urgency = "normal"
    budget: Budget = "balanced"
    options: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "options", MappingProxyType(dict(self.options)))

    @classmethod
    def build(
        cls,
        system_prompt: str,
        user_message: str,
        context: Optional[Mapping[str, Any]] = None,
        task_type: Optional[str] = None,
    ) -> "RequestContext":
        """Create a context from a caller map (camelCase keys accepted)."""
        ctx = dict(context or {})
        urgency = ctx.get("urgency", "normal")
        budget = ctx.get("budget", "balanced")
        return cls(
            system_prompt=system_prompt,
            user_message=user_message,
            task_type=task_type or ctx.get("task_type") or ctx.get("taskType") or "chat",
            urgency=urgency if urgency in _URGENCIES else "normal",
            budget=budget if budget in _BUDGETS else "balanced",
            options={k: v for k, v in ctx.items() if k not in _RESERVED},
        )

    def option(self, key: str, default: Any = None) -> Any:
        return self.options.get(key, default)

    @property
    def has_images(self) -> bool:
        return bool(self.options.get("has_images") or self.options.get("hasImages"))

    def cache_material(self) -> str:
        """Canonical JSON of everything besides the prompts that shapes the answer."""
        payload: Dict[str, Any] = {
            "task_type": self.task_type,
            "urgency": self.urgency,
            "budget": self.budget,
            "options": dict(self.options),
        }
        return json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)


__all__ = ["RequestContext", "Urgency", "Budget"]
