"""Resilience primitives owned by each adapter: cache, rate window, breaker, backoff."""

from .cache import ResponseCache, CacheEntry
from .rate_limiter import RateLimiter
from .circuit_breaker import CircuitBreaker
from .retry import exponential_delay, backoff_delay, RetryConfig
from .recovery import RecoveryAction, RECOVERY_TABLE, recovery_for

__all__ = [
    "ResponseCache",
    "CacheEntry",
    "RateLimiter",
    "CircuitBreaker",
    "exponential_delay",
    "backoff_delay",
    "RetryConfig",
    "RecoveryAction",
    "RECOVERY_TABLE",
    "recovery_for",
]
