"""Shared pool of ``httpx.Client`` instances.

Adapters never construct clients ad hoc: they ask :func:`get_httpx_client`
for one keyed by ``(base_url, purpose)`` so connections are reused across
calls and across adapter instances talking to the same vendor. Per-call
timeouts are passed on each request; the pooled default comes from
:func:`get_timeout_config`. All clients are closed at interpreter exit.
"""

from __future__ import annotations

import atexit
import contextlib
import threading
from typing import Dict, Optional, Tuple

import httpx

from ..timeouts import get_timeout_config

_CLIENTS: Dict[Tuple[Optional[str], str], httpx.Client] = {}
_LOCK = threading.RLock()


def get_httpx_client(base_url: Optional[str], purpose: str) -> httpx.Client:
    """Return the pooled client for ``base_url`` and ``purpose`` (e.g. ``"chat"``).

    Safe for concurrent use; creation is double-checked under a lock.
    """
    key = (base_url, purpose)
    client = _CLIENTS.get(key)
    if client is not None and not client.is_closed:
        return client
    with _LOCK:
        client = _CLIENTS.get(key)
        if client is not None and not client.is_closed:
            return client
        timeout = get_timeout_config().for_request()
        client = httpx.Client(base_url=base_url, timeout=timeout) if base_url else httpx.Client(timeout=timeout)
        _CLIENTS[key] = client
        return client


def close_all_clients() -> None:
    """Close and forget every pooled client (test teardown, shutdown)."""
    with _LOCK:
        for client in _CLIENTS.values():
            with contextlib.suppress(Exception):  # nosec B110 - best-effort shutdown
                client.close()
        _CLIENTS.clear()


atexit.register(close_all_clients)

__all__ = ["get_httpx_client", "close_all_clients"]
