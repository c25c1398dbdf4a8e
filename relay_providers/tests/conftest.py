"""Pytest configuration for the providers test suite.

Every test runs with provider credentials, config files and ``.env`` loading
isolated from the host, and with the shared HTTP client pool closed
afterwards. Adapter factories wire a :class:`VendorStub` transport, the fake
clock and zero jitter.
"""

from __future__ import annotations

from typing import Any, Callable, Iterator

import pytest

from relay_providers.anthropic import ClaudeAdapter
from relay_providers.base.http import close_all_clients
from relay_providers.base.logging import get_logger
from relay_providers.config import reset_config_cache
from relay_providers.openai import OpenAIAdapter
from relay_providers.tests.vendor_stubs import EventCollector, FakeClock, VendorStub


@pytest.fixture(autouse=True)
def isolated_provider_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> Iterator[None]:
    """Keep real credentials, config files and ``.env`` out of every test."""
    for var in (
        "OPENAI_API_KEY",
        "OPENAI_MODEL",
        "OPENAI_BASE_URL",
        "ANTHROPIC_API_KEY",
        "ANTHROPIC_MODEL",
        "ANTHROPIC_BASE_URL",
        "CLAUDE_API_KEY",
        "PROVIDERS_CONFIG_FILE",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("DOTENV_FILE", str(tmp_path / "missing.env"))
    reset_config_cache()
    yield
    reset_config_cache()
    close_all_clients()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def make_openai(clock: FakeClock) -> Callable[..., OpenAIAdapter]:
    """Build an :class:`OpenAIAdapter` wired to a stub, the fake clock and zero jitter."""

    def factory(stub: VendorStub, **config: Any) -> OpenAIAdapter:
        return OpenAIAdapter(
            "sk-test",
            config,
            http_client=stub.client(),
            clock=clock,
            sleep=clock.sleep,
            rng=lambda: 0.0,
        )

    return factory


@pytest.fixture()
def make_claude(clock: FakeClock) -> Callable[..., ClaudeAdapter]:
    def factory(stub: VendorStub, **config: Any) -> ClaudeAdapter:
        return ClaudeAdapter(
            "sk-ant-test",
            config,
            http_client=stub.client(),
            clock=clock,
            sleep=clock.sleep,
            rng=lambda: 0.0,
        )

    return factory


@pytest.fixture()
def log_events() -> Iterator[EventCollector]:
    """Capture structured events (the shared logger does not propagate to root)."""
    logger = get_logger()
    collector = EventCollector()
    logger.addHandler(collector)
    yield collector
    logger.removeHandler(collector)
