"""Server-Sent-Events decoding shared by the vendor adapters.

Vendors stream newline-delimited SSE: ``data: {json}`` lines, optionally
preceded by ``event:`` lines, terminated by ``data: [DONE]`` (OpenAI) or by
the connection closing after a terminal event (Anthropic). Only ``data:``
lines carry payloads; every other line is ignored.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, Iterator, Optional, Union

from ..logging import get_logger, normalized_log_event, LogContext

DONE_SENTINEL = "[DONE]"

_logger = get_logger("providers.streaming")


def _as_text(line: Union[str, bytes]) -> str:
    if isinstance(line, bytes):
        return line.decode("utf-8", errors="replace")
    return line


def iter_sse_data(
    lines: Iterable[Union[str, bytes]],
    ctx: Optional[LogContext] = None,
    logger: Optional[logging.Logger] = None,
) -> Iterator[Dict[str, Any]]:
    """Yield each decoded JSON object from ``data:`` lines, in order.

    Stops at the ``[DONE]`` sentinel. Malformed JSON is logged as
    ``stream.malformed_line`` and skipped; it never aborts the stream.
    """
    log = logger or _logger
    for raw in lines:
        line = _as_text(raw).strip()
        if not line.startswith("data:"):
            continue
        payload = line[5:].strip()
        if not payload:
            continue
        if payload == DONE_SENTINEL:
            return
        try:
            data = json.loads(payload)
        except ValueError:
            normalized_log_event(
                log,
                "stream.malformed_line",
                ctx,
                phase="stream",
                level=logging.WARNING,
                line=payload[:200],
            )
            continue
        if isinstance(data, dict):
            yield data
