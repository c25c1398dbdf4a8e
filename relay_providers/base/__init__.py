"""
Providers Base Package

Exports the provider-agnostic contract, DTOs, error taxonomy and the provider
factory used by the vendor adapters and the manager.

- Adapter: the shared call pipeline every vendor adapter inherits
- Models (DTOs): descriptors, request contexts, call plans, health records
- Resilience: cache, rate window, circuit breaker, backoff and recovery table
- Routing: candidate scoring and selection strategies
- Factory: lazy creation of provider adapters by canonical name
"""

from .adapter import CAPABILITY_TOKEN, ProviderAdapter
from .dto import AdapterConfig
from .errors import (
    CircuitOpenError,
    ErrorKind,
    NetworkError,
    NoProviderAvailableError,
    ProviderError,
    ValidationError,
)
from .factory import ProviderFactory, UnknownProviderError, create_provider
from .models import (
    CallPlan,
    HealthRecord,
    HealthStatus,
    ModelSpec,
    ProviderDescriptor,
    RequestContext,
    VendorReply,
)
from .routing import CandidateView, SelectionEngine
from .timeouts import TimeoutConfig, get_timeout_config

__all__ = [
    # Adapter
    "ProviderAdapter",
    "CAPABILITY_TOKEN",
    "AdapterConfig",
    # Errors
    "ErrorKind",
    "ProviderError",
    "ValidationError",
    "CircuitOpenError",
    "NetworkError",
    "NoProviderAvailableError",
    # Models
    "ModelSpec",
    "ProviderDescriptor",
    "RequestContext",
    "CallPlan",
    "HealthRecord",
    "HealthStatus",
    "VendorReply",
    # Routing
    "CandidateView",
    "SelectionEngine",
    # Factory
    "ProviderFactory",
    "UnknownProviderError",
    "create_provider",
    # Timeouts
    "TimeoutConfig",
    "get_timeout_config",
]
