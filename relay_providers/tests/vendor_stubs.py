"""Fake vendors and a manual clock shared by the provider tests.

Vendors are faked with ``httpx.MockTransport``; time is a manual clock whose
``sleep`` advances the clock, so breaker cooldowns, backoff and the rate
window run instantly and deterministically.
"""

from __future__ import annotations

import contextlib
import json
import logging
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

import httpx

Body = Union[Dict[str, Any], bytes, str]


class FakeClock:
    """Manual monotonic clock; ``sleep`` records the delay and advances time."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: List[float] = []
        self._lock = threading.Lock()

    def __call__(self) -> float:
        with self._lock:
            return self.now

    def advance(self, seconds: float) -> None:
        with self._lock:
            self.now += seconds

    def sleep(self, seconds: float) -> None:
        with self._lock:
            self.sleeps.append(seconds)
            self.now += seconds


class VendorStub:
    """Scripted vendor behind an ``httpx.MockTransport``.

    Either a ``handler(request) -> (status, body[, headers])`` or a list of
    canned replies (the last one repeats) decides each response. Every
    request is recorded.
    """

    def __init__(self, replies: Optional[List[tuple]] = None, handler: Optional[Callable] = None) -> None:
        self.requests: List[httpx.Request] = []
        self._replies = list(replies or [])
        self._handler = handler
        self._lock = threading.Lock()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.requests.append(request)
            if self._handler is not None:
                spec = self._handler(request)
            elif len(self._replies) > 1:
                spec = self._replies.pop(0)
            else:
                spec = self._replies[0]
        return build_response(*spec)

    def script(self, *replies: tuple) -> None:
        """Replace the canned replies (the last one repeats)."""
        with self._lock:
            self._replies = list(replies)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self))

    def payloads(self) -> List[Dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests]

    @property
    def calls(self) -> int:
        return len(self.requests)


def build_response(status: int, body: Body, headers: Optional[Dict[str, str]] = None) -> httpx.Response:
    if isinstance(body, dict):
        return httpx.Response(status, json=body, headers=headers)
    content = body.encode("utf-8") if isinstance(body, str) else body
    return httpx.Response(status, content=content, headers=headers)


def openai_completion(
    text: str,
    model: str = "gpt-4o",
    prompt_tokens: int = 12,
    completion_tokens: int = 8,
    finish_reason: str = "stop",
) -> Dict[str, Any]:
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "model": model,
        "choices": [{"index": 0, "message": {"role": "assistant", "content": text}, "finish_reason": finish_reason}],
        "usage": {
            "prompt_tokens": prompt_tokens,
            "completion_tokens": completion_tokens,
            "total_tokens": prompt_tokens + completion_tokens,
        },
    }


def claude_message(
    text: str,
    model: str = "claude-3-5-sonnet-20241022",
    input_tokens: int = 12,
    output_tokens: int = 8,
) -> Dict[str, Any]:
    return {
        "id": "msg_test",
        "type": "message",
        "role": "assistant",
        "model": model,
        "content": [{"type": "text", "text": text}],
        "stop_reason": "end_turn",
        "usage": {"input_tokens": input_tokens, "output_tokens": output_tokens},
    }


def error_body(message: str, type_: Optional[str] = None, code: Optional[str] = None) -> Dict[str, Any]:
    err: Dict[str, Any] = {"message": message}
    if type_:
        err["type"] = type_
    if code:
        err["code"] = code
    return {"error": err}


def sse_body(events: Iterable[Union[Dict[str, Any], str]], done: bool = True) -> bytes:
    """Encode events as ``data:`` lines; strings are emitted verbatim."""
    lines = []
    for event in events:
        if isinstance(event, str):
            lines.append(event)
        else:
            lines.append(f"data: {json.dumps(event)}")
        lines.append("")
    if done:
        lines.extend(["data: [DONE]", ""])
    return "\n".join(lines).encode("utf-8")


def openai_delta(content: Optional[str] = None, finish_reason: Optional[str] = None, **delta: Any) -> Dict[str, Any]:
    if content is not None:
        delta["content"] = content
    return {"choices": [{"index": 0, "delta": delta, "finish_reason": finish_reason}]}


SSE_HEADERS = {"content-type": "text/event-stream"}


class EventCollector(logging.Handler):
    """Collect the JSON events emitted through the shared ``providers`` logger."""

    def __init__(self) -> None:
        super().__init__(level=logging.DEBUG)
        self.events: List[Dict[str, Any]] = []

    def emit(self, record: logging.LogRecord) -> None:
        with contextlib.suppress(ValueError):
            payload = json.loads(record.getMessage())
            if isinstance(payload, dict):
                payload["level"] = record.levelname
                payload["logger"] = record.name
                self.events.append(payload)

    def named(self, event: str) -> List[Dict[str, Any]]:
        return [e for e in self.events if e.get("event") == event]
