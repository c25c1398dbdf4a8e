"""Validated configuration surface for one provider adapter.

Values are seconds unless noted. The millisecond spellings used by
JavaScript-era configuration files (``rateLimitWindowMs``, ``cacheTtlMs``,
``circuitBreakerCooldownMs``) are accepted and converted, as are the
camelCase names of the remaining knobs (``retryAttempts``,
``qualityThreshold``, ...).
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

_MS_ALIASES = {
    "rateLimitWindowMs": "rate_limit_window",
    "cacheTtlMs": "cache_ttl",
    "circuitBreakerCooldownMs": "circuit_breaker_cooldown",
    "timeoutMs": "timeout",
}

_CAMEL_ALIASES = {
    "retryAttempts": "retry_attempts",
    "rateLimitMax": "rate_limit_max",
    "cacheMaxEntries": "cache_max_entries",
    "circuitBreakerThreshold": "circuit_breaker_threshold",
    "qualityThreshold": "quality_threshold",
    "maxTokens": "max_tokens",
    "topP": "top_p",
    "frequencyPenalty": "frequency_penalty",
    "presencePenalty": "presence_penalty",
    "baseUrl": "base_url",
    "apiKey": "api_key",
}


def normalize_aliases(data: Dict[str, Any]) -> Dict[str, Any]:
    """Rewrite millisecond and camelCase keys to the canonical field names."""
    out = dict(data)
    for alias, field in _MS_ALIASES.items():
        if alias in out:
            value = out.pop(alias)
            if value is not None:
                out.setdefault(field, float(value) / 1000.0)
    for alias, field in _CAMEL_ALIASES.items():
        if alias in out:
            out.setdefault(field, out.pop(alias))
    return out


class AdapterConfig(BaseModel):
    """Resilience knobs and sampling defaults for an adapter.

    Attributes
    ----------
    timeout:
        Vendor call timeout in seconds; a timeout surfaces as a retryable
        ``timeout`` error.
    retry_attempts:
        Backoff retries allowed for rate-limit, network, timeout and service
        failures; ``0`` surfaces them without retrying. Recovery is still a
        single attempt per call.
    rate_limit_window / rate_limit_max:
        Sliding window length (seconds) and the acquisitions allowed in it.
    cache_ttl / cache_max_entries:
        Response cache freshness (seconds) and capacity.
    circuit_breaker_threshold / circuit_breaker_cooldown:
        Consecutive failures that open the breaker and how long it stays open.
    quality_threshold:
        Minimum normalized (0-1) response quality before a low-quality event
        is logged.
    """

    model_config = ConfigDict(extra="ignore", validate_assignment=True)

    api_key: Optional[str] = None
    base_url: Optional[str] = None
    model: Optional[str] = None

    timeout: float = Field(default=30.0, gt=0)
    retry_attempts: int = Field(default=3, ge=0)
    rate_limit_window: float = Field(default=60.0, gt=0)
    rate_limit_max: int = Field(default=100, ge=1)
    cache_ttl: float = Field(default=300.0, ge=0)
    cache_max_entries: int = Field(default=1000, ge=1)
    circuit_breaker_threshold: int = Field(default=5, ge=1)
    circuit_breaker_cooldown: float = Field(default=60.0, ge=0)
    quality_threshold: float = Field(default=0.8, ge=0.0, le=1.0)

    max_tokens: int = Field(default=4096, ge=1)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    top_p: float = Field(default=1.0, ge=0.0, le=1.0)
    frequency_penalty: float = Field(default=0.0, ge=-2.0, le=2.0)
    presence_penalty: float = Field(default=0.0, ge=-2.0, le=2.0)

    headers: Dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _accept_aliases(cls, data: Any) -> Any:
        return normalize_aliases(data) if isinstance(data, dict) else data

    def merged(self, overrides: Optional[Dict[str, Any]]) -> "AdapterConfig":
        """Return a copy with ``overrides`` (any accepted spelling) applied."""
        if not overrides:
            return self
        data = self.model_dump()
        data.update(normalize_aliases(overrides))
        return AdapterConfig(**data)

    def public_dict(self) -> Dict[str, Any]:
        """Config view safe for ``get_info`` (credentials redacted)."""
        data = self.model_dump()
        if data.get("api_key"):
            data["api_key"] = "***"
        return data


__all__ = ["AdapterConfig", "normalize_aliases"]
