"""Errors parts package public surface.

Re-exports individual error taxonomy components for optional direct imports.
Prefer importing from `relay_providers.base.errors` for the stable surface.
"""

from .error_kind import ErrorKind, KindPolicy, KIND_POLICIES
from .provider_error import (
    ProviderError,
    ValidationError,
    CircuitOpenError,
    NetworkError,
    NoProviderAvailableError,
)
from .classification import (
    classify_exception,
    classify_response_error,
    to_provider_error,
    enhance_error,
    new_request_id,
)

__all__ = [
    "ErrorKind",
    "KindPolicy",
    "KIND_POLICIES",
    "ProviderError",
    "ValidationError",
    "CircuitOpenError",
    "NetworkError",
    "NoProviderAvailableError",
    "classify_exception",
    "classify_response_error",
    "to_provider_error",
    "enhance_error",
    "new_request_id",
]
