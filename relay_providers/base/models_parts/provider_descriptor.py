"""
Immutable identity and capability set of one registered provider.

The manager owns descriptors: one is produced by the adapter at registration,
replaced when the same name is registered again and dropped on removal.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from .model_spec import ModelSpec


@dataclass(frozen=True)
class ProviderDescriptor:
    """Capabilities and model table of a provider.

    Attributes:
        name: Provider key (``"openai"``, ``"claude"``).
        default_model: Model used when no heuristic picks another.
        supports_streaming: Whether ``chat_stream`` is available.
        supports_function_calling: Whether function declarations are honoured.
        supports_vision: Whether image inputs are accepted by some model.
        context_window: Largest context window across the models.
        models: Model name to :class:`ModelSpec` (cost table).
        strengths: Task types this provider is well suited for; feeds the
            task suitability score during selection.
    """

    name: str
    default_model: str
    supports_streaming: bool = True
    supports_function_calling: bool = False
    supports_vision: bool = False
    context_window: int = 0
    models: Mapping[str, ModelSpec] = field(default_factory=dict)
    strengths: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        # Freeze the model table so descriptors can be shared between threads.
        object.__setattr__(self, "models", MappingProxyType(dict(self.models)))
        object.__setattr__(self, "strengths", tuple(self.strengths))

    def model(self, name: Optional[str]) -> Optional[ModelSpec]:
        """Return the spec for ``name`` (``None`` for unknown models)."""
        if not name:
            return None
        return self.models.get(name)

    def supports_task(self, task_type: str) -> bool:
        return task_type in self.strengths

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "default_model": self.default_model,
            "supports_streaming": self.supports_streaming,
            "supports_function_calling": self.supports_function_calling,
            "supports_vision": self.supports_vision,
            "context_window": self.context_window,
            "models": {k: v.to_dict() for k, v in self.models.items()},
            "strengths": list(self.strengths),
        }


__all__ = ["ProviderDescriptor"]
