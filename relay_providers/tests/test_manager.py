"""Provider manager: registration, default choice, selection and fallback."""
from __future__ import annotations

import json

import pytest

from relay_providers.base.errors import ErrorKind, NoProviderAvailableError, ProviderError, ValidationError
from relay_providers.base.models import HealthStatus
from relay_providers.base.routing import SelectionEngine
from relay_providers.manager import ProviderManager
from relay_providers.tests.vendor_stubs import (
    SSE_HEADERS,
    VendorStub,
    claude_message,
    error_body,
    openai_completion,
    openai_delta,
    sse_body,
)

SYSTEM = "You are concise."
QUESTION = "Summarize the meeting notes in one line."
OPENAI_ANSWER = "OpenAI says the team ships Friday."
CLAUDE_ANSWER = "Claude says the team ships Friday."


def _claude_stream(*texts):
    events = [{"type": "content_block_delta", "delta": {"type": "text_delta", "text": t}} for t in texts]
    events.append({"type": "message_stop"})
    return sse_body(events, done=False)


def _failing():
    return VendorStub([(500, error_body("Internal failure", type_="server_error"))])


@pytest.fixture()
def vendors():
    return {
        "openai": VendorStub([(200, openai_completion(OPENAI_ANSWER))]),
        "claude": VendorStub([(200, claude_message(CLAUDE_ANSWER))]),
    }


@pytest.fixture()
def latencies():
    return {}


@pytest.fixture()
def factory(vendors, latencies, make_openai, make_claude):
    builders = {"openai": make_openai, "claude": make_claude}

    def build(name, api_key, config):
        adapter = builders[name](vendors[name], **dict(config or {}))
        if name in latencies:
            adapter.validation_latency_ms = latencies[name]
        return adapter

    return build


@pytest.fixture()
def manager(factory, clock):
    mgr = ProviderManager(adapter_factory=factory, clock=clock, validate_keys=False)
    yield mgr
    mgr.cleanup()


@pytest.fixture()
def both(manager):
    manager.add_provider("openai", "sk-test")
    manager.add_provider("claude", "sk-ant-test")
    return manager


# --------------------------------------------------------------------------- #
# Registration & default provider
# --------------------------------------------------------------------------- #
def test_add_provider_registers_and_reports(manager):
    result = manager.add_provider("OpenAI", "sk-test")

    assert result["success"] is True and result["provider"] == "openai"  # nosec B101
    assert result["is_default"] is True  # nosec B101
    assert result["descriptor"]["name"] == "openai"  # nosec B101
    assert manager.default_provider == "openai"  # nosec B101
    assert manager.registry.names() == ["openai"]  # nosec B101


def test_empty_provider_name_is_rejected(manager):
    with pytest.raises(ValidationError):
        manager.add_provider("  ", "sk-test")


def test_first_provider_stays_default_without_a_faster_validation(both):
    assert both.default_provider == "openai"  # nosec B101
    assert both.get_providers()["claude"]["is_default"] is False  # nosec B101


def test_faster_streaming_provider_takes_over_default(manager, latencies):
    latencies.update({"openai": 6000.0, "claude": 120.0})
    manager.add_provider("openai", "sk-test")

    result = manager.add_provider("claude", "sk-ant-test")

    assert result["is_default"] is True  # nosec B101
    assert manager.default_provider == "claude"  # nosec B101


def test_slow_validation_never_takes_over_default(manager, latencies):
    latencies.update({"openai": 300.0, "claude": 5000.0})
    manager.add_provider("openai", "sk-test")
    manager.add_provider("claude", "sk-ant-test")
    assert manager.default_provider == "openai"  # nosec B101


def test_validated_registration_runs_the_probes(factory, clock, vendors):
    def handler(request):
        payload = json.loads(request.content)
        if "CAPABILITY_TEST_PASSED" in payload["messages"][-1]["content"]:
            return (200, openai_completion("CAPABILITY_TEST_PASSED"))
        return (200, openai_completion("ok"))

    vendors["openai"] = VendorStub(handler=handler)
    with ProviderManager(adapter_factory=factory, clock=clock) as manager:
        result = manager.add_provider("openai", "sk-test")

        assert result["validation_latency_ms"] == 0.0  # nosec B101
        assert vendors["openai"].calls == 3  # nosec B101
        assert manager.select_provider().calibrated  # nosec B101


def test_failed_key_validation_is_an_auth_error(factory, clock, vendors):
    vendors["openai"] = VendorStub([(401, error_body("Incorrect API key provided", code="invalid_api_key"))])
    manager = ProviderManager(adapter_factory=factory, clock=clock)

    with pytest.raises(ProviderError) as ei:
        manager.add_provider("openai", "sk-bad")

    assert ei.value.kind is ErrorKind.AUTH  # nosec B101
    assert len(manager.registry) == 0 and manager.default_provider is None  # nosec B101


def test_remove_provider_reassigns_default(both):
    assert both.remove_provider("openai") is True  # nosec B101
    assert both.default_provider == "claude"  # nosec B101
    assert both.remove_provider("openai") is False  # nosec B101
    assert both.remove_provider("claude") is True  # nosec B101
    assert both.default_provider is None  # nosec B101


def test_set_default_provider(both):
    both.set_default_provider("Claude")
    assert both.default_provider == "claude"  # nosec B101
    with pytest.raises(ValidationError):
        both.set_default_provider("gemini")


def test_re_registering_keeps_the_original_position(both):
    old = both.registry.get("openai").adapter
    old.state.metrics.record_start()

    both.add_provider("openai", "sk-other")

    assert both.registry.names() == ["openai", "claude"]  # nosec B101
    assert both.registry.get("openai").adapter is not old  # nosec B101
    assert old.state.metrics.snapshot().requests == 0  # nosec B101 - replaced adapter is cleaned up


# --------------------------------------------------------------------------- #
# Selection
# --------------------------------------------------------------------------- #
def test_empty_manager_has_no_provider(manager):
    with pytest.raises(NoProviderAvailableError) as ei:
        manager.select_provider()
    assert ei.value.kind is ErrorKind.NO_PROVIDER  # nosec B101

    with pytest.raises(NoProviderAvailableError):
        manager.chat(SYSTEM, QUESTION)


def test_selection_prefers_the_better_scoring_provider(both):
    openai = both.registry.get("openai")
    with openai.lock:
        openai.health.consecutive_failures = 4
    assert both.select_provider("chat", {}).provider_name == "claude"  # nosec B101


def test_file_analysis_routes_to_claude(both):
    assert both.select_provider("file_analysis").provider_name == "claude"  # nosec B101


def test_custom_rule_is_honoured(both):
    both.add_selection_rule("translation", lambda context, views: "claude")
    assert both.select_provider("translation").provider_name == "claude"  # nosec B101


def test_failing_rule_triggers_the_emergency_fallback(both):
    def broken(context, views):
        raise RuntimeError("rule exploded")

    both.add_selection_rule("translation", broken)

    assert both.select_provider("translation").provider_name == "openai"  # nosec B101
    assert both.get_system_status()["emergency_fallbacks"] == 1  # nosec B101


class _NothingSuits(SelectionEngine):
    def select(self, candidates, task_type="chat", context=None, exclude=()):
        return None


def test_emergency_fallback_prefers_a_healthy_provider(factory, clock):
    with ProviderManager(adapter_factory=factory, selection=_NothingSuits(), clock=clock, validate_keys=False) as manager:
        manager.add_provider("openai", "sk-test")
        manager.add_provider("claude", "sk-ant-test")
        state = manager.registry.get("openai")
        with state.lock:
            state.health.status = HealthStatus.UNHEALTHY

        assert manager.select_provider().provider_name == "claude"  # nosec B101


# --------------------------------------------------------------------------- #
# Calls & fallback
# --------------------------------------------------------------------------- #
def test_chat_uses_the_selected_provider(both, vendors):
    assert both.chat(SYSTEM, QUESTION) == OPENAI_ANSWER  # nosec B101
    assert vendors["claude"].calls == 0  # nosec B101

    status = both.get_system_status()
    assert (status["requests"], status["successes"], status["failures"]) == (1, 1, 0)  # nosec B101
    assert status["success_rate"] == 100.0  # nosec B101


def test_open_breaker_routes_calls_away_until_cooldown(both, vendors, clock):
    vendors["openai"].script((500, error_body("Internal failure", type_="server_error")))
    openai = both.select_provider()
    for _ in range(5):
        with pytest.raises(ProviderError):
            openai.chat(SYSTEM, QUESTION)
    calls = vendors["openai"].calls

    assert both.chat(SYSTEM, QUESTION) == CLAUDE_ANSWER  # nosec B101
    assert both.chat(SYSTEM, "Summarize the agenda in one line.") == CLAUDE_ANSWER  # nosec B101
    assert vendors["openai"].calls == calls  # nosec B101
    assert "openai" not in both.get_active_providers()  # nosec B101

    vendors["openai"].script((200, openai_completion(OPENAI_ANSWER)))
    clock.advance(60)
    assert "openai" in both.get_active_providers()  # nosec B101


def test_failure_falls_back_to_another_provider(both, vendors, log_events):
    vendors["openai"].script((500, error_body("Internal failure", type_="server_error")))

    assert both.chat(SYSTEM, QUESTION) == CLAUDE_ANSWER  # nosec B101

    status = both.get_system_status()
    assert status["failover_events"] == 1 and status["successes"] == 1  # nosec B101
    event = log_events.named("manager.fallback")[0]
    assert event["fallback_provider"] == "claude" and event["error_code"] == "service"  # nosec B101
    health = both.get_providers()["openai"]["health"]
    assert health["consecutive_failures"] == 1 and health["last_error_kind"] == "service"  # nosec B101


def test_validation_errors_never_fall_back(both, vendors):
    vendors["openai"].script((400, error_body("Invalid value for 'top_p'", type_="invalid_request_error")))

    with pytest.raises(ProviderError) as ei:
        both.chat(SYSTEM, QUESTION)

    assert ei.value.kind is ErrorKind.VALIDATION  # nosec B101
    assert vendors["claude"].calls == 0  # nosec B101
    assert both.get_providers()["openai"]["health"]["consecutive_failures"] == 0  # nosec B101


def test_second_failure_surfaces_with_the_first_as_cause(both, vendors):
    vendors["openai"].script((500, error_body("Internal failure", type_="server_error")))
    vendors["claude"].script((401, error_body("invalid x-api-key", type_="authentication_error")))

    with pytest.raises(ProviderError) as ei:
        both.chat(SYSTEM, QUESTION)

    assert ei.value.kind is ErrorKind.AUTH and ei.value.provider == "claude"  # nosec B101
    assert ei.value.__cause__.kind is ErrorKind.SERVICE  # nosec B101
    assert both.get_system_status()["failures"] == 1  # nosec B101


def test_single_provider_failure_surfaces(manager, vendors):
    vendors["openai"] = _failing()
    manager.add_provider("openai", "sk-test")

    with pytest.raises(ProviderError) as ei:
        manager.chat(SYSTEM, QUESTION)

    assert ei.value.kind is ErrorKind.SERVICE  # nosec B101
    assert manager.get_system_status()["failover_events"] == 0  # nosec B101


def test_stream_falls_back_when_nothing_was_delivered(both, vendors):
    vendors["openai"].script((503, error_body("Service unavailable", type_="server_error")))
    vendors["claude"].script((200, _claude_stream("Claude ", "streams."), SSE_HEADERS))
    chunks = []

    assert both.chat_stream(SYSTEM, QUESTION, chunks.append) == "Claude streams."  # nosec B101
    assert chunks == ["Claude ", "streams."]  # nosec B101


def test_stream_does_not_fall_back_after_delivery(both, vendors):
    body = sse_body([openai_delta("Partial "), {"error": {"message": "Overloaded", "type": "overloaded_error"}}], done=False)
    vendors["openai"].script((200, body, SSE_HEADERS))
    chunks = []

    with pytest.raises(ProviderError):
        both.chat_stream(SYSTEM, QUESTION, chunks.append)

    assert chunks == ["Partial "]  # nosec B101
    assert vendors["claude"].calls == 0  # nosec B101


def test_stream_requires_a_callable(both):
    with pytest.raises(ValidationError):
        both.chat_stream(SYSTEM, QUESTION, None)


# --------------------------------------------------------------------------- #
# Introspection & lifecycle
# --------------------------------------------------------------------------- #
def test_system_status_shape(both):
    both.chat(SYSTEM, QUESTION)

    status = both.get_system_status()

    assert status["providers"] == {  # nosec B101
        "total": 2,
        "healthy": 2,
        "names": ["openai", "claude"],
        "active": ["openai", "claude"],
    }
    assert status["default_provider"] == "openai"  # nosec B101
    assert status["emergency_fallback_available"] is True  # nosec B101
    assert status["monitoring"] is False  # nosec B101


def test_get_providers_includes_health_and_load(both):
    info = both.get_providers()["claude"]
    assert info["health"]["is_healthy"] is True and info["health"]["breaker_open"] is False  # nosec B101
    assert info["load"] == {"in_flight": 0, "percent": 0.0}  # nosec B101
    assert info["config"]["api_key"] == "***"  # nosec B101


def test_context_manager_cleans_up(factory, clock):
    with ProviderManager(adapter_factory=factory, clock=clock, validate_keys=False) as manager:
        manager.add_provider("openai", "sk-test")
        adapter = manager.select_provider()
        adapter.chat(SYSTEM, QUESTION)

    assert len(manager.registry) == 0 and manager.default_provider is None  # nosec B101
    assert adapter.state.metrics.snapshot().requests == 0  # nosec B101
