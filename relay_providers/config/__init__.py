"""Unified configuration layer for providers.

Goals
-----
* Centralize defaults (models, base URLs, sampling defaults).
* Merge sources in a predictable order (later wins):
    1. Built-in defaults
    2. Optional external config file (JSON or YAML) pointed to by PROVIDERS_CONFIG_FILE
    3. Environment variables (e.g. OPENAI_MODEL, OPENAI_API_KEY)
    4. In-code overrides passed to the helper
* Provide a single call site: ``get_provider_config(provider: str)``.

Environment Variable Conventions
--------------------------------
<PROVIDER>_MODEL, <PROVIDER>_API_KEY, <PROVIDER>_BASE_URL, using the canonical
section name (``claude`` reads ``ANTHROPIC_*``; ``CLAUDE_API_KEY`` is accepted
as a key alias).

External Config File (Optional)
-------------------------------
If PROVIDERS_CONFIG_FILE is set to a path, JSON is tried first, then YAML.
Resilience knobs may use either spelling accepted by ``AdapterConfig``::

    openai:
      model: gpt-4o-mini
      rateLimitMax: 50
    anthropic:
      cache_ttl: 120

Public API
----------
* get_provider_config(provider: str, overrides: dict | None = None) -> dict
* get_model(provider: str) -> str | None
* reset_config_cache() -> None
"""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ..base.dto import normalize_aliases
from .defaults import (
    ANTHROPIC_DEFAULT_BASE_URL,
    ANTHROPIC_DEFAULT_MAX_TOKENS,
    ANTHROPIC_DEFAULT_MODEL,
    ANTHROPIC_DEFAULT_TOP_P,
    OPENAI_DEFAULT_BASE_URL,
    OPENAI_DEFAULT_MODEL,
)
from .env import canonical_provider, is_placeholder, resolve_provider_key


# -------------------- Defaults --------------------

DEFAULTS: Dict[str, Dict[str, Any]] = {
    "openai": {"model": OPENAI_DEFAULT_MODEL, "base_url": OPENAI_DEFAULT_BASE_URL},
    "anthropic": {
        "model": ANTHROPIC_DEFAULT_MODEL,
        "base_url": ANTHROPIC_DEFAULT_BASE_URL,
        "max_tokens": ANTHROPIC_DEFAULT_MAX_TOKENS,
        "top_p": ANTHROPIC_DEFAULT_TOP_P,
    },
}


ENV_FIELD_MAP = {
    "model": "MODEL",
    "base_url": "BASE_URL",
}


_FILE_CACHE: Optional[Dict[str, Any]] = None
_DOTENV_LOADED = False


def _load_dotenv_once() -> None:
    """Lightweight .env loader.

    Parses KEY=VALUE lines, ignoring comments and blank lines. Existing
    environment variables win unless they hold a placeholder value.
    """
    global _DOTENV_LOADED
    if _DOTENV_LOADED:
        return
    path = os.getenv("DOTENV_FILE", ".env")
    if not os.path.isfile(path):
        _DOTENV_LOADED = True
        return
    try:
        with open(path, "r", encoding="utf-8") as fh:
            for line in fh:
                line = line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                k, v = line.split("=", 1)
                k = k.strip()
                v = v.strip().strip('"').strip("'")
                if k and (k not in os.environ or is_placeholder(os.environ.get(k))):
                    os.environ[k] = v
    finally:
        _DOTENV_LOADED = True


def _parse_config_text(text: str) -> Dict[str, Any]:
    try:
        data = json.loads(text)
    except ValueError:
        data = yaml.safe_load(text)
    return data if isinstance(data, dict) else {}


def _load_external_config() -> Dict[str, Any]:
    global _FILE_CACHE
    if _FILE_CACHE is not None:
        return _FILE_CACHE
    path = os.getenv("PROVIDERS_CONFIG_FILE")
    if not path or not Path(path).exists():
        _FILE_CACHE = {}
        return _FILE_CACHE
    _FILE_CACHE = _parse_config_text(Path(path).read_text(encoding="utf-8"))
    return _FILE_CACHE


def _env_overrides(provider: str) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    prefix = provider.upper()
    for field, suffix in ENV_FIELD_MAP.items():
        val = os.getenv(f"{prefix}_{suffix}")
        if val is not None:
            out[field] = val
    key, _ = resolve_provider_key(provider)
    if key:
        out["api_key"] = key
    return out


def get_provider_config(provider: str, overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return merged configuration for a provider.

    Merge order (later wins): defaults -> external config -> env vars -> overrides.
    ``None`` values in ``overrides`` are ignored. File and override keys are
    normalized to canonical field names first, so ``maxTokens`` replaces the
    default ``max_tokens`` instead of sitting beside it.
    """
    _load_dotenv_once()
    name = canonical_provider(provider)
    cfg: Dict[str, Any] = {}

    cfg |= DEFAULTS.get(name, {})

    file_cfg = _load_external_config().get(name)
    if isinstance(file_cfg, dict):
        cfg |= normalize_aliases(file_cfg)

    cfg |= _env_overrides(name)

    if overrides:
        cfg |= normalize_aliases({k: v for k, v in overrides.items() if v is not None})

    return cfg


def get_model(provider: str) -> Optional[str]:
    return get_provider_config(provider).get("model")


def reset_config_cache() -> None:
    """Forget the parsed config file (tests and hot reload)."""
    global _FILE_CACHE
    _FILE_CACHE = None


__all__ = [
    "get_provider_config",
    "get_model",
    "reset_config_cache",
    "DEFAULTS",
]
