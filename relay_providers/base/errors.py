"""Unified provider error taxonomy public surface.

This module re-exports the one-class-per-file implementations under
``relay_providers.base.errors_parts`` to maintain a stable import path while
enforcing the one-class-per-file governance rule.
"""

from .errors_parts.error_kind import ErrorKind, KindPolicy, KIND_POLICIES
from .errors_parts.provider_error import (
    ProviderError,
    ValidationError,
    CircuitOpenError,
    NetworkError,
    NoProviderAvailableError,
)
from .errors_parts.classification import (
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
