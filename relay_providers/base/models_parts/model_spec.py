"""
Per-model pricing and limits entry of a provider descriptor.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class ModelSpec:
    """Static facts about one vendor model.

    Attributes:
        name: Vendor model identifier (e.g., ``"gpt-4o-mini"``).
        context_window: Maximum prompt + completion tokens.
        max_output_tokens: Hard cap on completion tokens.
        input_cost_per_1k: USD per 1,000 prompt tokens.
        output_cost_per_1k: USD per 1,000 completion tokens.
        strengths: Task kinds the model is good at (``"coding"``, ...).
    """

    name: str
    context_window: int
    max_output_tokens: int
    input_cost_per_1k: float = 0.0
    output_cost_per_1k: float = 0.0
    strengths: Tuple[str, ...] = field(default_factory=tuple)

    def cost(self, prompt_tokens: int, completion_tokens: int) -> float:
        """Return the USD cost of a call with the given token usage."""
        return (prompt_tokens / 1000.0) * self.input_cost_per_1k + (
            completion_tokens / 1000.0
        ) * self.output_cost_per_1k

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["strengths"] = list(self.strengths)
        return data


__all__ = ["ModelSpec"]
