"""Streaming helpers for the Claude adapter.

The Messages API streams typed events. Text arrives in
``content_block_delta`` events; ``message_start`` carries the model and
prompt usage, ``message_delta`` the stop reason and completion usage, and
``message_stop`` ends the stream. An ``error`` event (for example
``overloaded_error``) aborts the call.
"""

from __future__ import annotations

import json
from typing import Any, Dict

from ..base.errors import ProviderError, classify_response_error
from ..base.http import raise_for_vendor_status
from ..base.logging import LogContext
from ..base.models import CallPlan, VendorReply
from ..base.streaming import StreamAccumulator, iter_sse_data

from .helpers import MESSAGES_PATH


class _StreamUsage:
    __slots__ = ("model", "input_tokens", "output_tokens")

    def __init__(self, model: str) -> None:
        self.model = model
        self.input_tokens = 0
        self.output_tokens = 0


class ClaudeStreamingMixin:
    """Mixin providing the SSE send path."""

    def send_stream(self, plan: CallPlan, request_id: str, accumulator: StreamAccumulator) -> VendorReply:
        ctx = LogContext(provider=self.provider_name, model=plan.model, request_id=request_id)
        usage = _StreamUsage(plan.model)
        with self._client("anthropic.stream").stream(
            "POST",
            f"{self.base_url}{MESSAGES_PATH}",
            json=self._payload(plan, stream=True),
            headers=self._headers(),
            timeout=self._timeout(stream=True),
        ) as response:
            if not response.is_success:
                response.read()
                raise_for_vendor_status(response, self.provider_name, model=plan.model, request_id=request_id)
            for event in iter_sse_data(response.iter_lines(), ctx, self._logger):
                if self._consume_event(event, accumulator, usage, ctx, response.status_code):
                    break
        return VendorReply(
            text=accumulator.text,
            model=usage.model,
            prompt_tokens=usage.input_tokens,
            completion_tokens=usage.output_tokens,
            finish_reason=accumulator.finish_reason,
        )

    def _consume_event(
        self,
        event: Dict[str, Any],
        accumulator: StreamAccumulator,
        usage: _StreamUsage,
        ctx: LogContext,
        status: int,
    ) -> bool:
        """Apply one event; return ``True`` when the stream is finished."""
        kind = event.get("type")
        if kind == "content_block_delta":
            delta = event.get("delta") or {}
            accumulator.push(delta.get("text"))
        elif kind == "message_start":
            message = event.get("message") or {}
            usage.model = message.get("model") or usage.model
            usage.input_tokens = int((message.get("usage") or {}).get("input_tokens") or 0)
        elif kind == "message_delta":
            delta = event.get("delta") or {}
            if delta.get("stop_reason"):
                accumulator.finish_reason = delta["stop_reason"]
            usage.output_tokens = int((event.get("usage") or {}).get("output_tokens") or usage.output_tokens)
        elif kind == "message_stop":
            return True
        elif kind == "error":
            err: Any = event.get("error") or {}
            detail = err.get("message", "") if isinstance(err, dict) else str(err)
            raise ProviderError(
                kind=classify_response_error(status, json.dumps(err)),
                message=f"stream error: {detail}",
                provider=self.provider_name,
                model=ctx.model,
                request_id=ctx.request_id,
            )
        return False


__all__ = ["ClaudeStreamingMixin"]
