"""Timeout values shared by adapters and the HTTP client pool.

``get_timeout_config()`` returns a process-cached :class:`TimeoutConfig`,
re-read only when one of the supported environment variables changes:

    PT_TIMEOUT_HTTP_SECONDS     vendor request timeout (default 30)
    PT_TIMEOUT_CONNECT_SECONDS  connection establishment (default 10)
    PT_TIMEOUT_STREAM_SECONDS   idle gap between stream chunks (default 60)

Adapter configuration (``AdapterConfig.timeout``) overrides the HTTP value
per adapter; this module only supplies the process defaults.
"""
from __future__ import annotations

import os
from dataclasses import dataclass

import httpx

_ENV_VARS = (
    "PT_TIMEOUT_HTTP_SECONDS",
    "PT_TIMEOUT_CONNECT_SECONDS",
    "PT_TIMEOUT_STREAM_SECONDS",
)


@dataclass(frozen=True)
class TimeoutConfig:
    """Normalized timeout values (seconds)."""

    http_timeout_seconds: float = 30.0
    connect_timeout_seconds: float = 10.0
    stream_timeout_seconds: float = 60.0

    def for_request(self, total: float | None = None) -> httpx.Timeout:
        """Build an ``httpx.Timeout`` for a unary call (optionally overridden)."""
        seconds = total if total and total > 0 else self.http_timeout_seconds
        return httpx.Timeout(seconds, connect=min(seconds, self.connect_timeout_seconds))

    def for_stream(self, total: float | None = None) -> httpx.Timeout:
        """Streams bound the idle read gap rather than the whole response."""
        seconds = total if total and total > 0 else self.http_timeout_seconds
        return httpx.Timeout(
            seconds,
            connect=min(seconds, self.connect_timeout_seconds),
            read=self.stream_timeout_seconds,
        )


_CACHED: TimeoutConfig | None = None
_ENV_GUARD: str | None = None


def _parse_env_float(name: str, default: float) -> float:
    """Read a positive float from ``name``; anything else yields ``default``."""
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        val = float(raw)
    except ValueError:
        return default
    return val if val > 0 else default


def get_timeout_config() -> TimeoutConfig:
    """Return the cached config, refreshing it when the env overrides change."""
    global _CACHED, _ENV_GUARD  # noqa: PLW0603 - module cache
    guard = "/".join(os.getenv(name, "") for name in _ENV_VARS)
    if _CACHED is not None and guard == _ENV_GUARD:
        return _CACHED
    _CACHED = TimeoutConfig(
        http_timeout_seconds=_parse_env_float("PT_TIMEOUT_HTTP_SECONDS", 30.0),
        connect_timeout_seconds=_parse_env_float("PT_TIMEOUT_CONNECT_SECONDS", 10.0),
        stream_timeout_seconds=_parse_env_float("PT_TIMEOUT_STREAM_SECONDS", 60.0),
    )
    _ENV_GUARD = guard
    return _CACHED


__all__ = ["TimeoutConfig", "get_timeout_config"]
