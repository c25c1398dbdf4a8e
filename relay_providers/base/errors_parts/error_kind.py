"""
Normalized provider error kinds (taxonomy).

Defines the `ErrorKind` enumeration shared by adapters, the manager and the
recovery table, together with the per-kind policy record (`KindPolicy`) that
states whether a kind is recoverable/retryable and what the caller is told.
Values are lowercase snake_case and are considered a stable public contract
for logging and programmatic handling.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict


class ErrorKind(str, Enum):
    """Enumerated normalized error kinds representing failure categories."""

    AUTH = "auth"
    RATE_LIMIT = "rate_limit"
    QUOTA = "quota"
    NETWORK = "network"
    TIMEOUT = "timeout"
    SERVICE = "service"
    VALIDATION = "validation"
    CONTEXT_LENGTH = "context_length"
    MODEL_NOT_FOUND = "model_not_found"
    CIRCUIT_OPEN = "circuit_open"
    NO_PROVIDER = "no_provider"
    UNKNOWN = "unknown"

    @property
    def policy(self) -> "KindPolicy":
        return KIND_POLICIES[self]

    @property
    def recoverable(self) -> bool:
        return KIND_POLICIES[self].recoverable

    @property
    def retryable(self) -> bool:
        return KIND_POLICIES[self].retryable


@dataclass(frozen=True)
class KindPolicy:
    """Caller-facing policy for one error kind.

    Attributes:
        recoverable: Whether some automatic recovery path exists.
        retryable: Whether repeating the same request may succeed.
        message: Human-readable summary shown to end users.
        suggested_action: Short hint for operators / calling code.
    """

    recoverable: bool
    retryable: bool
    message: str
    suggested_action: str


KIND_POLICIES: Dict[ErrorKind, KindPolicy] = {
    ErrorKind.AUTH: KindPolicy(
        False, False, "API key is invalid or missing", "Check API key configuration"
    ),
    ErrorKind.RATE_LIMIT: KindPolicy(
        True, True, "rate limit reached, retry shortly", "Wait and retry with exponential backoff"
    ),
    ErrorKind.QUOTA: KindPolicy(
        True, True, "usage quota exhausted", "Check billing or fall back to a cheaper model"
    ),
    ErrorKind.NETWORK: KindPolicy(
        True, True, "could not reach the provider", "Check network connectivity and retry"
    ),
    ErrorKind.TIMEOUT: KindPolicy(
        True, True, "the provider did not answer in time", "Retry, or raise the request timeout"
    ),
    ErrorKind.SERVICE: KindPolicy(
        True, True, "the provider is having temporary problems", "Retry after a delay or switch providers"
    ),
    ErrorKind.VALIDATION: KindPolicy(
        False, False, "the request is malformed", "Check request parameters and format"
    ),
    ErrorKind.CONTEXT_LENGTH: KindPolicy(
        True, True, "the message is too long for the model", "Compress the context and retry"
    ),
    ErrorKind.MODEL_NOT_FOUND: KindPolicy(
        True, True, "the requested model is unavailable", "Retry with a fallback model"
    ),
    ErrorKind.CIRCUIT_OPEN: KindPolicy(
        True, False, "the provider is temporarily disabled after repeated failures", "Retry after the cooldown"
    ),
    ErrorKind.NO_PROVIDER: KindPolicy(
        False, False, "no provider is registered", "Register a provider before chatting"
    ),
    ErrorKind.UNKNOWN: KindPolicy(
        False, False, "an unknown error occurred", "Contact support"
    ),
}


__all__ = ["ErrorKind", "KindPolicy", "KIND_POLICIES"]
