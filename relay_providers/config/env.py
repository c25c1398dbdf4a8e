"""relay_providers.config.env
==========================

Environment variable mapping for provider credentials and settings.

Purpose
-------
- Map provider identifiers (and their aliases such as ``claude`` / ``gpt``)
  to a canonical config section name.
- Provide the canonical and alias environment variable names for API keys.

Failure Modes
-------------
- Functions return ``None`` when a provider is unknown or no value is present.
  Helpers never raise on missing providers or unset variables.
"""

from __future__ import annotations

import os
from typing import Dict, Iterable, Optional, Tuple

# Provider alias -> canonical config section
PROVIDER_ALIASES: Dict[str, str] = {
    "gpt": "openai",
    "claude": "anthropic",
}

# Canonical provider -> env var holding its API key
ENV_MAP: Dict[str, str] = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
}

# Provider -> ordered tuple of acceptable env var names (canonical first)
ENV_ALIASES: Dict[str, Tuple[str, ...]] = {
    "anthropic": ("ANTHROPIC_API_KEY", "CLAUDE_API_KEY"),
}


def canonical_provider(provider: str) -> str:
    """Return the config section name for ``provider`` (``claude`` -> ``anthropic``)."""
    name = (provider or "").lower().strip()
    return PROVIDER_ALIASES.get(name, name)


def is_placeholder(val: Optional[str]) -> bool:
    """Return True if the value looks like a placeholder/test token.

    Heuristics: contains 'placeholder', 'changeme' or 'example', or starts
    with 'test_'. Case-insensitive.
    """
    if val is None:
        return False
    v = str(val).strip().lower()
    return "placeholder" in v or "changeme" in v or "example" in v or v.startswith("test_")


def get_env_var_name(provider: str) -> Optional[str]:
    return ENV_MAP.get(canonical_provider(provider)) if provider else None


def get_env_var_candidates(provider: str) -> Iterable[str]:
    """Yield acceptable API key env var names, canonical first."""
    p = canonical_provider(provider)
    canonical = ENV_MAP.get(p)
    if canonical:
        yield canonical
    for alias in ENV_ALIASES.get(p, ()):
        if alias != canonical:
            yield alias


def resolve_provider_key(provider: str) -> Tuple[Optional[str], Optional[str]]:
    """Return ``(value, env_var_used)`` for the first non-placeholder key found.

    ``(None, None)`` when nothing usable is set.
    """
    for name in get_env_var_candidates(provider):
        val = os.environ.get(name)
        if val and not is_placeholder(val):
            return val, name
    return None, None


__all__ = [
    "PROVIDER_ALIASES",
    "ENV_MAP",
    "ENV_ALIASES",
    "canonical_provider",
    "is_placeholder",
    "get_env_var_name",
    "get_env_var_candidates",
    "resolve_provider_key",
]
