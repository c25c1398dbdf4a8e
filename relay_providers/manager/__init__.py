"""Provider manager package: registry, selection-driven calls and health monitoring."""

from .health import HealthMonitor
from .manager import AdapterFactory, ProviderManager
from .registry import ProviderRegistry, ProviderState

__all__ = ["ProviderManager", "AdapterFactory", "HealthMonitor", "ProviderRegistry", "ProviderState"]
