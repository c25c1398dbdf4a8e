"""relay_providers.config.defaults
===============================

Central place for small, stable default values used across the
relay_providers package. These defaults can be overridden via environment
variables or external configuration, but provide sensible fallbacks for local
development and tests.

This module intentionally avoids importing from other provider packages to
prevent circular dependencies. Only plain constants live here.
"""

from __future__ import annotations

# ---- Provider-specific defaults ----

# OpenAI chat completions endpoint root.
OPENAI_DEFAULT_MODEL = "gpt-4o"
OPENAI_DEFAULT_BASE_URL = "https://api.openai.com/v1"

# Anthropic Messages API; the version header is pinned.
ANTHROPIC_DEFAULT_MODEL = "claude-3-5-sonnet-20241022"
ANTHROPIC_DEFAULT_BASE_URL = "https://api.anthropic.com/v1"
ANTHROPIC_API_VERSION = "2023-06-01"
ANTHROPIC_DEFAULT_MAX_TOKENS = 8192
ANTHROPIC_DEFAULT_TOP_P = 0.9


# ---- Manager / monitor defaults ----

# A provider whose key validated faster than this may become the default.
FAST_VALIDATION_MS = 5000.0

# Background monitor cadence (seconds).
HEALTH_CHECK_INTERVAL_SECONDS = 30.0
METRICS_INTERVAL_SECONDS = 60.0
QUALITY_RECALIBRATION_INTERVAL_SECONDS = 300.0

# Health classification thresholds.
DEGRADED_RELIABILITY_PERCENT = 90.0
DEGRADED_LATENCY_MS = 10_000.0


__all__ = [
    "OPENAI_DEFAULT_MODEL",
    "OPENAI_DEFAULT_BASE_URL",
    "ANTHROPIC_DEFAULT_MODEL",
    "ANTHROPIC_DEFAULT_BASE_URL",
    "ANTHROPIC_API_VERSION",
    "ANTHROPIC_DEFAULT_MAX_TOKENS",
    "ANTHROPIC_DEFAULT_TOP_P",
    "FAST_VALIDATION_MS",
    "HEALTH_CHECK_INTERVAL_SECONDS",
    "METRICS_INTERVAL_SECONDS",
    "QUALITY_RECALIBRATION_INTERVAL_SECONDS",
    "DEGRADED_RELIABILITY_PERCENT",
    "DEGRADED_LATENCY_MS",
]
