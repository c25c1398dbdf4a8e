"""HTTP envelope, response parsing and SSE handling for the OpenAI adapter.

Encapsulates the chat/completions wire format so the main adapter module
only wires hooks together.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Mapping, Optional

from ..base.adapter_parts import estimate_tokens
from ..base.errors import ErrorKind, ProviderError, classify_response_error
from ..base.http import raise_for_vendor_status
from ..base.logging import LogContext, normalized_log_event
from ..base.models import CallPlan, VendorReply
from ..base.streaming import StreamAccumulator, iter_sse_data

CHAT_PATH = "/chat/completions"


def function_call_text(call: Mapping[str, Any]) -> str:
    """Serialize a function invocation as the JSON text returned to callers."""
    return json.dumps(
        {"type": "function_call", "function": call.get("name"), "arguments": call.get("arguments")}
    )


def merge_function_fragment(call: Dict[str, str], fragment: Any) -> None:
    """Fold a streamed ``function_call`` delta (or the first ``tool_calls`` entry) into ``call``."""
    if isinstance(fragment, list):
        first = next((item for item in fragment if isinstance(item, dict) and item.get("index", 0) == 0), None)
        fragment = (first or {}).get("function")
    if not isinstance(fragment, dict):
        return
    for field in ("name", "arguments"):
        if fragment.get(field):
            call[field] = call.get(field, "") + fragment[field]


class OpenAIWireMixin:
    """Mixin providing envelope builders and the unary/streamed send paths."""

    def _headers(self) -> Dict[str, str]:
        headers: Dict[str, str] = {"Content-Type": "application/json", **self.config.headers}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _messages(self, plan: CallPlan) -> List[Dict[str, str]]:
        messages: List[Dict[str, str]] = []
        if plan.system_prompt:
            messages.append({"role": "system", "content": plan.system_prompt})
        messages.append({"role": "user", "content": plan.user_message})
        return messages

    def _payload(self, plan: CallPlan, stream: bool = False) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": plan.model,
            "max_tokens": plan.max_tokens,
            "temperature": plan.temperature,
            "top_p": plan.top_p,
            "frequency_penalty": plan.frequency_penalty,
            "presence_penalty": plan.presence_penalty,
            "messages": self._messages(plan),
        }
        if stream:
            payload["stream"] = True
        if plan.functions:
            payload["functions"] = list(plan.functions)
            payload["function_call"] = plan.function_call if plan.function_call is not None else "auto"
        if plan.stop:
            payload["stop"] = list(plan.stop)
        if plan.extra.get("logit_bias"):
            payload["logit_bias"] = plan.extra["logit_bias"]
        return payload

    def send(self, plan: CallPlan, request_id: str) -> VendorReply:
        response = self._client("openai.chat").post(
            f"{self.base_url}{CHAT_PATH}",
            json=self._payload(plan),
            headers=self._headers(),
            timeout=self._timeout(),
        )
        raise_for_vendor_status(response, self.provider_name, model=plan.model, request_id=request_id)
        return self._parse_completion(response.json(), plan, request_id)

    def _parse_completion(self, data: Dict[str, Any], plan: CallPlan, request_id: str) -> VendorReply:
        choices = data.get("choices") or []
        if not choices:
            raise ProviderError(
                kind=ErrorKind.SERVICE,
                message="completion contained no choices",
                provider=self.provider_name,
                model=plan.model,
                request_id=request_id,
            )
        choice = choices[0]
        message = choice.get("message") or {}
        call = message.get("function_call")
        if not call and message.get("tool_calls"):
            call = (message["tool_calls"][0] or {}).get("function")
        text = function_call_text(call) if call else (message.get("content") or "")
        usage = data.get("usage") or {}
        return VendorReply(
            text=text,
            model=data.get("model") or plan.model,
            prompt_tokens=int(usage.get("prompt_tokens") or 0),
            completion_tokens=int(usage.get("completion_tokens") or 0),
            finish_reason=choice.get("finish_reason"),
        )

    def send_stream(self, plan: CallPlan, request_id: str, accumulator: StreamAccumulator) -> VendorReply:
        ctx = LogContext(provider=self.provider_name, model=plan.model, request_id=request_id)
        client = self._client("openai.stream")
        call: Dict[str, str] = {}
        with client.stream(
            "POST",
            f"{self.base_url}{CHAT_PATH}",
            json=self._payload(plan, stream=True),
            headers=self._headers(),
            timeout=self._timeout(stream=True),
        ) as response:
            if not response.is_success:
                response.read()
                raise_for_vendor_status(response, self.provider_name, model=plan.model, request_id=request_id)
            for event in iter_sse_data(response.iter_lines(), ctx, self._logger):
                self._consume_stream_event(event, accumulator, ctx, response.status_code, call)
        if not accumulator.text and call.get("name"):
            # A reply that only invokes a function carries no text deltas.
            accumulator.push(function_call_text(call))
        text = accumulator.text
        # Streams carry no usage block; estimate so cost accounting stays populated.
        return VendorReply(
            text=text,
            model=plan.model,
            prompt_tokens=estimate_tokens(plan.system_prompt) + estimate_tokens(plan.user_message),
            completion_tokens=estimate_tokens(text),
            finish_reason=accumulator.finish_reason,
        )

    def _consume_stream_event(
        self,
        event: Dict[str, Any],
        accumulator: StreamAccumulator,
        ctx: LogContext,
        status: int,
        call: Dict[str, str],
    ) -> None:
        err = event.get("error")
        if err:
            detail = err.get("message", str(err)) if isinstance(err, dict) else str(err)
            raise ProviderError(
                kind=classify_response_error(status, json.dumps(err) if isinstance(err, dict) else detail),
                message=f"stream error: {detail}",
                provider=self.provider_name,
                model=ctx.model,
                request_id=ctx.request_id,
            )
        choices = event.get("choices") or []
        if not choices:
            return
        choice = choices[0]
        delta = choice.get("delta") or {}
        accumulator.push(delta.get("content"))
        fragment = delta.get("function_call") or delta.get("tool_calls")
        if fragment:
            merge_function_fragment(call, fragment)
            self.on_function_delta(fragment, ctx)
        if choice.get("finish_reason"):
            accumulator.finish_reason = choice["finish_reason"]
            self.on_finish_reason(choice["finish_reason"], ctx)

    def on_function_delta(self, fragment: Any, ctx: LogContext) -> None:
        normalized_log_event(self._logger, "stream.function_call", ctx, phase="stream", level=logging.DEBUG, fragment=fragment)

    def on_finish_reason(self, reason: Optional[str], ctx: LogContext) -> None:
        normalized_log_event(self._logger, "stream.finish", ctx, phase="stream", level=logging.DEBUG, finish_reason=reason)


__all__ = ["OpenAIWireMixin", "function_call_text", "merge_function_fragment", "CHAT_PATH"]
