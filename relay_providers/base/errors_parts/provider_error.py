"""
Structured provider error exception types.

Wraps vendor and transport failures with a normalized `ErrorKind` for
consistent recovery, manager-level fallback and structured logging. The
specialised subclasses exist so callers can ``except CircuitOpenError`` etc.
without inspecting ``kind``.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .error_kind import ErrorKind


@dataclass
class ProviderError(Exception):
    """Represents a structured provider error with a normalized error kind.

    Attributes:
        kind: Normalized :class:`ErrorKind` classification for the failure.
        message: Original error message suitable for logging.
        provider: Provider key where the error originated (e.g., ``"openai"``).
        model: Optional model name associated with the failure.
        request_id: Identifier of the call that failed, set once enhanced.
        status: HTTP status code when the failure came from a response.
        retry_after: Vendor supplied ``retry-after`` hint in seconds.
        raw: Optional original exception for diagnostics.
    """

    kind: ErrorKind
    message: str
    provider: str
    model: Optional[str] = None
    request_id: Optional[str] = None
    status: Optional[int] = None
    retry_after: Optional[float] = None
    raw: Optional[BaseException] = None

    @property
    def recoverable(self) -> bool:
        return self.kind.recoverable

    @property
    def retryable(self) -> bool:
        return self.kind.retryable

    @property
    def user_message(self) -> str:
        """Human-readable message keyed by kind, prefixed with the provider."""
        return f"{self.provider}: {self.kind.policy.message}"

    @property
    def suggested_action(self) -> str:
        return self.kind.policy.suggested_action

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-friendly view for logs and API responses."""
        return {
            "kind": self.kind.value,
            "message": self.message,
            "user_message": self.user_message,
            "suggested_action": self.suggested_action,
            "provider": self.provider,
            "model": self.model,
            "request_id": self.request_id,
            "status": self.status,
            "recoverable": self.recoverable,
            "retryable": self.retryable,
        }

    def __str__(self) -> str:  # pragma: no cover - trivial
        """Return a compact string combining provider, model, kind, and message."""
        rid = f" [{self.request_id}]" if self.request_id else ""
        return f"{self.provider}:{self.model or '-'} {self.kind.value}: {self.message}{rid}"


class ValidationError(ProviderError):
    """Caller supplied an unusable request (empty prompt, bad option)."""

    def __init__(self, message: str, provider: str = "relay", **kwargs: Any) -> None:
        super().__init__(kind=ErrorKind.VALIDATION, message=message, provider=provider, **kwargs)


class CircuitOpenError(ProviderError):
    """Raised by the breaker gate; no network call was made."""

    def __init__(self, message: str, provider: str, **kwargs: Any) -> None:
        super().__init__(kind=ErrorKind.CIRCUIT_OPEN, message=message, provider=provider, **kwargs)


class NetworkError(ProviderError):
    """Transport-level failure (connect error, reset, timeout)."""

    def __init__(
        self,
        message: str,
        provider: str,
        kind: ErrorKind = ErrorKind.NETWORK,
        **kwargs: Any,
    ) -> None:
        super().__init__(kind=kind, message=message, provider=provider, **kwargs)


class NoProviderAvailableError(ProviderError):
    """The manager registry is empty."""

    def __init__(self, message: str = "No AI providers available", provider: str = "manager", **kwargs: Any) -> None:
        super().__init__(kind=ErrorKind.NO_PROVIDER, message=message, provider=provider, **kwargs)


__all__ = [
    "ProviderError",
    "ValidationError",
    "CircuitOpenError",
    "NetworkError",
    "NoProviderAvailableError",
]
