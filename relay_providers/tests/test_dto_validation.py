from __future__ import annotations

import pytest
from pydantic import ValidationError as PydanticValidationError

from relay_providers.base.dto import AdapterConfig, normalize_aliases


def test_defaults_match_documented_knobs():
    cfg = AdapterConfig()
    assert cfg.timeout == 30.0  # nosec B101
    assert (cfg.rate_limit_window, cfg.rate_limit_max) == (60.0, 100)  # nosec B101
    assert (cfg.cache_ttl, cfg.cache_max_entries) == (300.0, 1000)  # nosec B101
    assert (cfg.circuit_breaker_threshold, cfg.circuit_breaker_cooldown) == (5, 60.0)  # nosec B101
    assert cfg.quality_threshold == 0.8  # nosec B101


def test_millisecond_and_camel_case_aliases_are_converted():
    cfg = AdapterConfig(
        rateLimitWindowMs=30000,
        cacheTtlMs=120000,
        circuitBreakerCooldownMs=45000,
        circuitBreakerThreshold=3,
        rateLimitMax=10,
        maxTokens=512,
    )
    assert cfg.rate_limit_window == 30.0  # nosec B101
    assert cfg.cache_ttl == 120.0  # nosec B101
    assert cfg.circuit_breaker_cooldown == 45.0  # nosec B101
    assert cfg.circuit_breaker_threshold == 3  # nosec B101
    assert cfg.rate_limit_max == 10  # nosec B101
    assert cfg.max_tokens == 512  # nosec B101


def test_canonical_spelling_wins_over_alias():
    assert normalize_aliases({"cache_ttl": 10, "cacheTtlMs": 99000}) == {"cache_ttl": 10}  # nosec B101


def test_invalid_values_are_rejected():
    with pytest.raises(PydanticValidationError):
        AdapterConfig(quality_threshold=1.5)
    with pytest.raises(PydanticValidationError):
        AdapterConfig(rate_limit_max=0)


def test_merged_and_public_dict():
    cfg = AdapterConfig(api_key="sk-secret").merged({"timeoutMs": 5000})
    assert cfg.timeout == 5.0  # nosec B101
    assert cfg.public_dict()["api_key"] == "***"  # nosec B101
