"""OpenAI adapter package."""

from .client import OPENAI_DESCRIPTOR, OpenAIAdapter
from .planning import OPENAI_MODELS

__all__ = ["OpenAIAdapter", "OPENAI_DESCRIPTOR", "OPENAI_MODELS"]
