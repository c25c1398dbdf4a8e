"""HTTP utilities package for providers.

Exposes pooled httpx clients and vendor error translation.
"""

from .client import get_httpx_client, close_all_clients
from .errors import raise_for_vendor_status

__all__ = ["get_httpx_client", "close_all_clients", "raise_for_vendor_status"]
