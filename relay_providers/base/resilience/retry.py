from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Callable, Optional

from ..errors import ErrorKind, ProviderError


def exponential_delay(consecutive_failures: int, base_delay: float = 1.0, max_delay: float = 60.0) -> float:
    """``min(max_delay, base_delay * 2**(n-1))`` for ``n >= 1`` (0 otherwise)."""
    if consecutive_failures < 1:
        return 0.0
    # Cap the exponent; 2**64 seconds is already far past any max_delay.
    exponent = min(consecutive_failures - 1, 64)
    return min(max_delay, base_delay * (2**exponent))


def backoff_delay(
    consecutive_failures: int,
    *,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    jitter: float = 1.0,
    retry_after: Optional[float] = None,
    rng: Callable[[], float] = random.random,
) -> float:
    """Backoff before the next attempt.

    A vendor ``retry-after`` hint replaces the exponential term (still capped
    by ``max_delay``). Jitter is uniform in ``[0, jitter)``.
    """
    if retry_after is not None and retry_after >= 0:
        base = min(max_delay, retry_after)
    else:
        base = exponential_delay(max(1, consecutive_failures), base_delay, max_delay)
    return base + rng() * jitter


@dataclass(frozen=True)
class RetryConfig:
    """Backoff retry policy of one adapter.

    ``max_attempts`` counts the first call, so ``retry_attempts=0`` in the
    adapter config gives ``max_attempts=1`` and no backoff retry. The adapter
    never makes more than one recovery per call whatever the budget.
    """

    max_attempts: int = 2
    base_delay: float = 1.0
    max_delay: float = 60.0
    jitter: float = 1.0
    retryable_kinds: tuple[ErrorKind, ...] = (
        ErrorKind.RATE_LIMIT,
        ErrorKind.NETWORK,
        ErrorKind.TIMEOUT,
        ErrorKind.SERVICE,
    )
    rng: Callable[[], float] = random.random

    @classmethod
    def from_attempts(cls, retry_attempts: int, **kwargs) -> "RetryConfig":
        return cls(max_attempts=max(0, retry_attempts) + 1, **kwargs)

    def should_retry(self, error: ProviderError, attempt: int) -> bool:
        return attempt < self.max_attempts and error.kind in self.retryable_kinds

    def delay_for(self, consecutive_failures: int, error: ProviderError) -> float:
        return backoff_delay(
            consecutive_failures,
            base_delay=self.base_delay,
            max_delay=self.max_delay,
            jitter=self.jitter,
            retry_after=error.retry_after,
            rng=self.rng,
        )


__all__ = [
    "exponential_delay",
    "backoff_delay",
    "RetryConfig",
]
