"""relay_providers package

Resilient access to multiple LLM vendors behind one call surface.

Purpose:
    Each vendor adapter (OpenAI, Claude) wraps its HTTP API with a response
    cache, a sliding-window rate limit, a circuit breaker, classified errors
    with a single automatic recovery attempt, and performance metrics. The
    :class:`ProviderManager` registers adapters, picks one per call from
    health, performance and task suitability, falls back to another provider
    when a call fails, and monitors health in the background.

Public API (re-exported):
    - Version: ``__version__``
    - Manager: :class:`ProviderManager`
    - Adapters: :class:`ProviderAdapter`, :class:`OpenAIAdapter`, :class:`ClaudeAdapter`
    - Factory: :func:`create`, :class:`ProviderFactory`
    - Exceptions: :class:`ProviderError` and its subclasses, :class:`ErrorKind`
    - Config: :class:`AdapterConfig`, :func:`get_provider_config`
    - Logging: :func:`configure_logger`

Example::

    manager = ProviderManager()
    manager.add_provider("openai", os.environ["OPENAI_API_KEY"])
    reply = manager.chat("You are terse.", "Summarize this file", task_type="file_analysis")
"""

from .anthropic import ClaudeAdapter
from .base.adapter import ProviderAdapter
from .base.dto import AdapterConfig
from .base.errors import (
    CircuitOpenError,
    ErrorKind,
    NetworkError,
    NoProviderAvailableError,
    ProviderError,
    ValidationError,
)
from .base.factory import ProviderFactory, UnknownProviderError, create_provider
from .base.logging import configure_logger
from .base.models import HealthStatus, ProviderDescriptor
from .base.routing import SelectionEngine
from .config import get_provider_config
from .manager import HealthMonitor, ProviderManager
from .openai import OpenAIAdapter

__version__ = "0.1.0"

create = create_provider

__all__ = [
    # Version
    "__version__",
    # Manager
    "ProviderManager",
    "HealthMonitor",
    "SelectionEngine",
    # Adapters
    "ProviderAdapter",
    "OpenAIAdapter",
    "ClaudeAdapter",
    "ProviderDescriptor",
    "HealthStatus",
    # Factory
    "create",
    "ProviderFactory",
    "UnknownProviderError",
    # Exceptions
    "ErrorKind",
    "ProviderError",
    "ValidationError",
    "CircuitOpenError",
    "NetworkError",
    "NoProviderAvailableError",
    # Config
    "AdapterConfig",
    "get_provider_config",
    # Logging
    "configure_logger",
]
