"""Models parts package public surface.

Re-exports individual value objects so callers can import from
`relay_providers.base.models_parts` if needed, while `relay_providers.base.models`
remains the primary stable import path.
"""

from .model_spec import ModelSpec
from .provider_descriptor import ProviderDescriptor
from .request_context import RequestContext, Urgency, Budget
from .call_plan import CallPlan
from .health_record import HealthRecord, HealthStatus
from .vendor_reply import VendorReply

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
