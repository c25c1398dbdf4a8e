"""
Error classification helpers mapping exceptions to normalized ErrorKind values.

Implements vendor error-code detection, HTTP status extraction,
status-to-kind mapping, and message-based heuristics as a fallback so that
failures from ``httpx`` and from vendor JSON error bodies land in the same
taxonomy.
"""
from __future__ import annotations

import uuid
from typing import Dict, Optional

import httpx

from .error_kind import ErrorKind
from .provider_error import NetworkError, ProviderError


def _extract_status(exc: BaseException) -> Optional[int]:
    """Attempt to extract an HTTP status code from a provider exception.

    Supported attribute shapes (checked in order):
    - ``exc.status_code``
    - ``exc.status``
    - ``exc.response.status_code``
    Returns ``None`` if no valid status can be found.
    """
    for attr in ("status_code", "status"):
        val = getattr(exc, attr, None)
        if isinstance(val, int) and 100 <= val < 600:
            return val
    resp = getattr(exc, "response", None)
    if resp is not None:
        sc = getattr(resp, "status_code", None)
        if isinstance(sc, int) and 100 <= sc < 600:
            return sc
    return None


def _extract_retry_after(exc: BaseException) -> Optional[float]:
    """Return the ``retry-after`` header (seconds) when the vendor sent one."""
    resp = getattr(exc, "response", None)
    headers = getattr(resp, "headers", None)
    if headers is None:
        return None
    raw = headers.get("retry-after")
    if raw is None:
        return None
    try:
        val = float(raw)
    except (TypeError, ValueError):
        return None
    return val if val >= 0 else None


_HTTP_STATUS_MAP: Dict[int, ErrorKind] = {
    400: ErrorKind.VALIDATION,
    401: ErrorKind.AUTH,
    403: ErrorKind.AUTH,
    404: ErrorKind.MODEL_NOT_FOUND,
    408: ErrorKind.TIMEOUT,
    413: ErrorKind.CONTEXT_LENGTH,
    422: ErrorKind.VALIDATION,
    429: ErrorKind.RATE_LIMIT,
    500: ErrorKind.SERVICE,
    502: ErrorKind.SERVICE,
    503: ErrorKind.SERVICE,
    504: ErrorKind.TIMEOUT,
    529: ErrorKind.SERVICE,
}

# Vendor error codes are more specific than the HTTP status that carries them
# (quota exhaustion arrives as 429, context overflow as 400).
_VENDOR_CODES = (
    (ErrorKind.QUOTA, ("insufficient_quota", "quota")),
    (ErrorKind.CONTEXT_LENGTH, ("context_length_exceeded", "maximum context length", "prompt is too long")),
    (ErrorKind.MODEL_NOT_FOUND, ("model_not_found", "does not exist")),
    (ErrorKind.SERVICE, ("overloaded_error", "overloaded")),
)


def _vendor_code_from_message(msg: str) -> Optional[ErrorKind]:
    for kind, patterns in _VENDOR_CODES:
        if any(p in msg for p in patterns):
            return kind
    return None


def _heuristic_from_message(msg: str) -> Optional[ErrorKind]:  # pragma: no cover - simple mapping
    """Substring heuristic mapping for exceptions without a status."""
    PATTERN_GROUPS = (
        (ErrorKind.RATE_LIMIT, ("rate limit", "rate_limit", "throttle", "too many requests")),
        (ErrorKind.TIMEOUT, ("timeout", "timed out")),
        (ErrorKind.AUTH, ("api key", "authentication", "unauthorized", "forbidden")),
        (ErrorKind.NETWORK, ("network", "connection", "fetch")),
        (ErrorKind.SERVICE, ("server error", "internal error", "unavailable")),
        (ErrorKind.VALIDATION, ("invalid", "malformed", "validation")),
    )
    for kind, patterns in PATTERN_GROUPS:
        if any(p in msg for p in patterns):
            return kind
    return None


def classify_exception(exc: BaseException) -> ErrorKind:
    """Classify an exception into a normalized :class:`ErrorKind`.

    Precedence:
        1. ProviderError passthrough.
        2. Vendor error codes found in the message (quota, context length,
           model not found, overloaded).
        3. Timeout exceptions (``httpx`` and builtin).
        4. Other ``httpx`` transport errors.
        5. HTTP status mapping.
        6. Message heuristics.
        7. ``UNKNOWN`` fallback.
    """
    if isinstance(exc, ProviderError):
        return exc.kind
    msg = str(exc).lower()
    code = _vendor_code_from_message(msg)
    if code is not None:
        return code
    if isinstance(exc, (httpx.TimeoutException, TimeoutError)):
        return ErrorKind.TIMEOUT
    if isinstance(exc, httpx.TransportError):
        return ErrorKind.NETWORK
    status = _extract_status(exc)
    if status is not None:
        if status in _HTTP_STATUS_MAP:
            return _HTTP_STATUS_MAP[status]
        if status >= 500:
            return ErrorKind.SERVICE
    code = _heuristic_from_message(msg)
    return code if code is not None else ErrorKind.UNKNOWN


def to_provider_error(
    exc: BaseException,
    provider: str,
    model: Optional[str] = None,
    request_id: Optional[str] = None,
) -> ProviderError:
    """Return ``exc`` as a :class:`ProviderError`, classifying when needed.

    Existing provider errors are returned as-is, only gaining the
    ``request_id`` / ``model`` they were missing.
    """
    if isinstance(exc, ProviderError):
        if exc.request_id is None:
            exc.request_id = request_id
        if exc.model is None:
            exc.model = model
        return exc
    kind = classify_exception(exc)
    fields = dict(
        model=model,
        request_id=request_id,
        status=_extract_status(exc),
        retry_after=_extract_retry_after(exc),
        raw=exc,
    )
    message = str(exc) or type(exc).__name__
    if isinstance(exc, (httpx.TransportError, TimeoutError)):
        return NetworkError(message, provider, kind=kind, **fields)
    return ProviderError(kind=kind, message=message, provider=provider, **fields)


def classify_response_error(status: int, message: str) -> ErrorKind:
    """Classify a non-2xx vendor response from its status and error body text."""
    msg = message.lower()
    code = _vendor_code_from_message(msg)
    if code is not None:
        return code
    if status in _HTTP_STATUS_MAP:
        return _HTTP_STATUS_MAP[status]
    if status >= 500:
        return ErrorKind.SERVICE
    code = _heuristic_from_message(msg)
    return code if code is not None else ErrorKind.UNKNOWN


def enhance_error(
    exc: BaseException,
    provider: str,
    request_id: Optional[str] = None,
    model: Optional[str] = None,
) -> ProviderError:
    """Return the enhanced error surfaced to callers.

    Ensures a request id is always present so the failure can be correlated
    with the structured log lines of the same call.
    """
    return to_provider_error(exc, provider, model=model, request_id=request_id or new_request_id(provider))


def new_request_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


__all__ = [
    "classify_exception",
    "classify_response_error",
    "to_provider_error",
    "enhance_error",
    "new_request_id",
    "_extract_status",
    "_extract_retry_after",
    "_HTTP_STATUS_MAP",
]
