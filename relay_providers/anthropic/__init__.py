"""Claude (Anthropic) adapter package."""

from .client import CLAUDE_DESCRIPTOR, ClaudeAdapter
from .helpers import CLAUDE_MODELS

__all__ = ["ClaudeAdapter", "CLAUDE_DESCRIPTOR", "CLAUDE_MODELS"]
