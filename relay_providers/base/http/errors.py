"""Translation of non-2xx vendor responses into :class:`ProviderError`.

Both supported vendors wrap failures as ``{"error": {"message", "type",
"code"}}``. The vendor ``type`` / ``code`` is folded into the message so the
shared classifier can see ``insufficient_quota``, ``overloaded_error`` and
friends before falling back to the HTTP status.
"""
from __future__ import annotations

from typing import Any, Optional

import httpx

from ..errors import ProviderError, classify_response_error


def _error_detail(response: httpx.Response) -> str:
    try:
        body: Any = response.json()
    except ValueError:
        return response.text[:500] if response.text else response.reason_phrase
    err = body.get("error") if isinstance(body, dict) else None
    if isinstance(err, dict):
        tags = [str(err[k]) for k in ("type", "code") if err.get(k)]
        message = str(err.get("message") or response.reason_phrase)
        return f"{' / '.join(tags)}: {message}" if tags else message
    if isinstance(err, str):
        return err
    return response.text[:500]


def _retry_after(response: httpx.Response) -> Optional[float]:
    raw = response.headers.get("retry-after")
    if raw is None:
        return None
    try:
        val = float(raw)
    except ValueError:
        return None
    return val if val >= 0 else None


def raise_for_vendor_status(
    response: httpx.Response,
    provider: str,
    model: Optional[str] = None,
    request_id: Optional[str] = None,
) -> None:
    """Raise a classified :class:`ProviderError` unless ``response`` is 2xx.

    Streaming responses must be ``read()`` before calling this.
    """
    if response.is_success:
        return
    detail = _error_detail(response)
    raise ProviderError(
        kind=classify_response_error(response.status_code, detail),
        message=f"HTTP {response.status_code} {detail}",
        provider=provider,
        model=model,
        request_id=request_id,
        status=response.status_code,
        retry_after=_retry_after(response),
    )


__all__ = ["raise_for_vendor_status"]
