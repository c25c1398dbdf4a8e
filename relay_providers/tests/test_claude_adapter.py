"""Claude adapter behaviour against a fake Messages API endpoint."""
from __future__ import annotations

import json

import pytest

from relay_providers.anthropic import ClaudeAdapter
from relay_providers.anthropic.helpers import HAIKU, OPUS, SONNET
from relay_providers.base.errors import ErrorKind, ProviderError
from relay_providers.tests.vendor_stubs import SSE_HEADERS, VendorStub, claude_message, error_body, sse_body

SYSTEM = "You are concise."
QUESTION = "Summarize the meeting notes in one line."
ANSWER = "The team agreed to ship on Friday."


def _stream_events(*texts, model=SONNET, input_tokens=25, output_tokens=4, stop_reason="end_turn"):
    events = [
        {"type": "message_start", "message": {"model": model, "usage": {"input_tokens": input_tokens}}},
        {"type": "content_block_start", "index": 0, "content_block": {"type": "text", "text": ""}},
        "event: ping",
    ]
    events += [{"type": "content_block_delta", "index": 0, "delta": {"type": "text_delta", "text": t}} for t in texts]
    events += [
        {"type": "content_block_stop", "index": 0},
        {"type": "message_delta", "delta": {"stop_reason": stop_reason}, "usage": {"output_tokens": output_tokens}},
        {"type": "message_stop"},
    ]
    return sse_body(events, done=False)


def test_defaults_differ_from_the_generic_adapter():
    adapter = ClaudeAdapter("sk-ant-test")
    assert adapter.config.max_tokens == 8192  # nosec B101
    assert adapter.config.top_p == 0.9  # nosec B101
    assert adapter.model == SONNET  # nosec B101
    assert adapter.descriptor.supports_function_calling is False  # nosec B101


def test_explicit_config_overrides_the_defaults():
    adapter = ClaudeAdapter("sk-ant-test", {"maxTokens": 1024, "top_p": 1.0})
    assert adapter.config.max_tokens == 1024 and adapter.config.top_p == 1.0  # nosec B101


def test_chat_sends_messages_envelope(make_claude):
    stub = VendorStub([(200, claude_message(ANSWER))])

    assert make_claude(stub).chat(SYSTEM, QUESTION, {"stop": "END"}) == ANSWER  # nosec B101

    request = stub.requests[0]
    assert str(request.url) == "https://api.anthropic.com/v1/messages"  # nosec B101
    assert request.headers["x-api-key"] == "sk-ant-test"  # nosec B101
    assert request.headers["anthropic-version"] == "2023-06-01"  # nosec B101
    assert "authorization" not in request.headers  # nosec B101
    payload = stub.payloads()[0]
    assert payload["system"] == SYSTEM  # nosec B101
    assert payload["messages"] == [{"role": "user", "content": QUESTION}]  # nosec B101
    assert payload["model"] == SONNET and payload["max_tokens"] == 8192  # nosec B101
    assert payload["top_p"] == 0.9  # nosec B101
    assert payload["stop_sequences"] == ["END"]  # nosec B101


def test_multiple_text_blocks_are_joined(make_claude):
    message = claude_message("")
    message["content"] = [
        {"type": "text", "text": "The team agreed "},
        {"type": "tool_use", "id": "t1", "name": "noop", "input": {}},
        {"type": "text", "text": "to ship on Friday."},
    ]
    stub = VendorStub([(200, message)])
    assert make_claude(stub).chat(SYSTEM, QUESTION) == ANSWER  # nosec B101


def test_creative_requests_use_opus_with_capped_output(make_claude):
    stub = VendorStub([(200, claude_message(ANSWER, model=OPUS))])

    make_claude(stub).chat(SYSTEM, "Write a short poem about the sea")

    payload = stub.payloads()[0]
    assert payload["model"] == OPUS  # nosec B101
    assert payload["max_tokens"] == 4096  # nosec B101
    assert payload["temperature"] == 0.9  # nosec B101


@pytest.mark.parametrize(
    ("message", "context", "model"),
    [
        (QUESTION, {"urgency": "high"}, HAIKU),
        ("Debug this Python function", {}, SONNET),
        ("Research the ethical questions here", {}, OPUS),
        (QUESTION, {}, SONNET),
    ],
)
def test_model_choice_heuristics(make_claude, message, context, model):
    stub = VendorStub([(200, claude_message(ANSWER))])
    make_claude(stub).chat(SYSTEM, message, context)
    assert stub.payloads()[0]["model"] == model  # nosec B101


def test_usage_feeds_cost_accounting(make_claude):
    stub = VendorStub([(200, claude_message(ANSWER, input_tokens=1000, output_tokens=1000))])
    adapter = make_claude(stub)

    adapter.chat(SYSTEM, QUESTION)

    snap = adapter.state.metrics.snapshot()
    assert snap.tokens_used == 2000  # nosec B101
    assert snap.total_cost == pytest.approx(0.003 + 0.015)  # nosec B101


def test_quota_failure_recovers_on_haiku(make_claude):
    stub = VendorStub(
        [
            (429, error_body("Your credit balance is too low: insufficient_quota", type_="rate_limit_error")),
            (200, claude_message(ANSWER, model=HAIKU)),
        ]
    )
    assert make_claude(stub).chat(SYSTEM, QUESTION) == ANSWER  # nosec B101
    assert [p["model"] for p in stub.payloads()] == [SONNET, HAIKU]  # nosec B101


def test_missing_model_falls_back_to_haiku(make_claude):
    stub = VendorStub(
        [
            (404, error_body(f"model: {SONNET} does not exist", type_="not_found_error")),
            (200, claude_message(ANSWER, model=HAIKU)),
        ]
    )
    make_claude(stub).chat(SYSTEM, QUESTION)
    assert stub.payloads()[1]["model"] == HAIKU  # nosec B101


def test_overloaded_vendor_is_a_service_failure(make_claude, clock):
    stub = VendorStub([(529, error_body("Overloaded", type_="overloaded_error"))])
    adapter = make_claude(stub)

    with pytest.raises(ProviderError) as ei:
        adapter.chat(SYSTEM, QUESTION)

    assert ei.value.kind is ErrorKind.SERVICE  # nosec B101
    assert ei.value.provider == "claude"  # nosec B101
    assert stub.calls == 2 and clock.sleeps == [1.0]  # nosec B101


def test_prompt_too_long_is_compressed_once(make_claude):
    stub = VendorStub(
        [
            (400, error_body("prompt is too long: 210000 tokens > 200000 maximum", type_="invalid_request_error")),
            (200, claude_message(ANSWER)),
        ]
    )
    make_claude(stub).chat(SYSTEM, "Summarize: " + "minutes of the meeting " * 50)

    first, second = (p["messages"][0]["content"] for p in stub.payloads())
    assert len(second) < len(first)  # nosec B101


def test_stream_collects_deltas_and_usage(make_claude):
    stub = VendorStub([(200, _stream_events("The team ", "agreed.", input_tokens=25, output_tokens=4), SSE_HEADERS)])
    adapter = make_claude(stub)
    chunks = []

    text = adapter.chat_stream(SYSTEM, QUESTION, chunks.append)

    assert text == "The team agreed."  # nosec B101
    assert chunks == ["The team ", "agreed."]  # nosec B101
    assert stub.payloads()[0]["stream"] is True  # nosec B101
    assert adapter.state.metrics.snapshot().tokens_used == 29  # nosec B101


def test_stream_error_event_before_output_is_retried(make_claude, clock):
    overloaded = sse_body(
        [{"type": "error", "error": {"type": "overloaded_error", "message": "Overloaded"}}], done=False
    )
    stub = VendorStub([(200, overloaded, SSE_HEADERS), (200, _stream_events("Back online."), SSE_HEADERS)])
    chunks = []

    assert make_claude(stub).chat_stream(SYSTEM, QUESTION, chunks.append) == "Back online."  # nosec B101
    assert chunks == ["Back online."]  # nosec B101
    assert clock.sleeps == [1.0]  # nosec B101


def test_stream_error_event_after_output_surfaces(make_claude):
    body = sse_body(
        [
            {"type": "content_block_delta", "index": 0, "delta": {"type": "text_delta", "text": "The team"}},
            {"type": "error", "error": {"type": "overloaded_error", "message": "Overloaded"}},
        ],
        done=False,
    )
    stub = VendorStub([(200, body, SSE_HEADERS)])
    chunks = []

    with pytest.raises(ProviderError) as ei:
        make_claude(stub).chat_stream(SYSTEM, QUESTION, chunks.append)

    assert ei.value.kind is ErrorKind.SERVICE  # nosec B101
    assert chunks == ["The team"] and stub.calls == 1  # nosec B101


def test_key_validation_probes(make_claude):
    def handler(request):
        payload = json.loads(request.content)
        if "CAPABILITY_TEST_PASSED" in payload["messages"][0]["content"]:
            return (200, claude_message("CAPABILITY_TEST_PASSED"))
        return (200, claude_message("Test"))

    stub = VendorStub(handler=handler)
    adapter = make_claude(stub)

    assert adapter.validate_api_key() is True  # nosec B101
    assert stub.calls == 3  # nosec B101
    assert all("system" not in p for p in stub.payloads())  # nosec B101


def test_key_validation_fails_when_the_key_is_rejected(make_claude):
    stub = VendorStub([(401, error_body("invalid x-api-key", type_="authentication_error"))])
    adapter = make_claude(stub)

    assert adapter.validate_api_key() is False  # nosec B101
    assert not adapter.calibrated  # nosec B101
