"""Provider Factory utilities.

Purpose
-------
Centralize creation of :class:`ProviderAdapter` instances from a provider
name. Adapters are imported lazily using ``importlib`` to keep side effects
out of the factory layer.

Configuration
-------------
The adapter config is resolved through ``config.get_provider_config`` so
built-in defaults, the optional config file and ``<PROVIDER>_*`` environment
variables apply; explicit ``config`` values win. An explicit ``api_key`` wins
over every configured key.

Scope
-----
Supported names: ``openai`` (alias ``gpt``) and ``claude`` (alias
``anthropic``).
"""

from __future__ import annotations

from importlib import import_module
from typing import Any, Dict, Mapping, Optional, Tuple, Type

from ..config import get_provider_config


class UnknownProviderError(Exception):
    """Raised when a provider cannot be resolved or initialized.

    Failure modes include:
    - The provider name is not registered in the factory mapping.
    - The provider module cannot be imported or the adapter class is missing.
    - The adapter constructor raised an exception during initialization.
    """


def create_provider(provider: str, api_key: Optional[str] = None, config: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> Any:
    """Compatibility helper that delegates to :meth:`ProviderFactory.create`."""
    return ProviderFactory.create(provider, api_key, config, **kwargs)


class ProviderFactory:
    """Create provider adapters based on a name (e.g., ``"openai"``, ``"claude"``)."""

    # Map provider names to import paths and class names
    _PROVIDERS: Dict[str, Dict[str, str]] = {
        "openai": {"module": "relay_providers.openai.client", "class": "OpenAIAdapter"},
        "gpt": {"module": "relay_providers.openai.client", "class": "OpenAIAdapter"},
        "claude": {"module": "relay_providers.anthropic.client", "class": "ClaudeAdapter"},
        "anthropic": {"module": "relay_providers.anthropic.client", "class": "ClaudeAdapter"},
    }

    @classmethod
    def create(
        cls,
        provider: str,
        api_key: Optional[str] = None,
        config: Optional[Mapping[str, Any]] = None,
        **adapter_kwargs: Any,
    ) -> Any:
        """Create a provider adapter instance.

        Parameters
        ----------
        provider:
            Provider name (case-insensitive).
        api_key:
            Explicit credential; falls back to the configured one.
        config:
            Adapter config overrides (any spelling ``AdapterConfig`` accepts).
        **adapter_kwargs:
            Forwarded to the adapter constructor (``http_client``, ``clock``,
            ``sleep``, ``rng``).

        Raises
        ------
        UnknownProviderError
            If provider is unknown, the adapter module fails to import, the
            adapter class is missing, or the adapter constructor raises.
        """
        name = (provider or "").lower().strip()
        spec = cls._PROVIDERS.get(name)
        if not spec:
            raise UnknownProviderError(f"Unknown provider '{provider}'")

        module_path, class_name = spec["module"], spec["class"]
        try:
            mod = import_module(module_path)
        except Exception as exc:  # pragma: no cover - import failure path
            raise UnknownProviderError(
                f"Failed to import module '{module_path}' for provider '{provider}': {exc}"
            ) from exc

        try:
            klass: Type = getattr(mod, class_name)
        except AttributeError as exc:
            raise UnknownProviderError(
                f"Adapter class '{class_name}' not found in '{module_path}' for provider '{provider}'"
            ) from exc

        resolved = get_provider_config(name, dict(config or {}))
        key = api_key or resolved.pop("api_key", None)
        try:
            return klass(key, resolved, **adapter_kwargs)
        except TypeError as exc:
            raise UnknownProviderError(
                f"Invalid arguments for '{provider}' adapter constructor: {exc}"
            ) from exc
        except Exception as exc:
            raise UnknownProviderError(
                f"Failed to initialize provider '{provider}': {exc}"
            ) from exc

    @classmethod
    def supported(cls) -> Tuple[str, ...]:
        return tuple(cls._PROVIDERS.keys())


__all__ = ["ProviderFactory", "UnknownProviderError", "create_provider"]
