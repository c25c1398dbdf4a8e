"""Validated configuration DTOs for adapters."""

from .adapter_config import AdapterConfig, normalize_aliases

__all__ = ["AdapterConfig", "normalize_aliases"]
