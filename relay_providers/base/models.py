"""
Provider-agnostic value objects public surface.

This module re-exports the one-class-per-file implementations under
``relay_providers.base.models_parts`` so callers have a single stable import
path.
"""

from .models_parts.model_spec import ModelSpec
from .models_parts.provider_descriptor import ProviderDescriptor
from .models_parts.request_context import RequestContext, Urgency, Budget
from .models_parts.call_plan import CallPlan
from .models_parts.health_record import HealthRecord, HealthStatus
from .models_parts.vendor_reply import VendorReply

__all__ = [
    "ModelSpec",
    "ProviderDescriptor",
    "RequestContext",
    "Urgency",
    "Budget",
    "CallPlan",
    "HealthRecord",
    "HealthStatus",
    "VendorReply",
]
