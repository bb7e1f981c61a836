# src/llm/client_factory.py — v1
"""Factory: instantiate the reasoning-service client from settings."""

from __future__ import annotations

import importlib
import logging

from buildcheck.config.settings import Settings
from buildcheck.llm.base_client import BaseLLMClient

logger = logging.getLogger(__name__)

# Registry of provider name -> adapter class path (imported on first use).
_PROVIDER_REGISTRY: dict[str, str] = {
    "anthropic": "buildcheck.llm.adapters.anthropic_adapter.AnthropicAdapter",
}


class UnsupportedProviderError(ValueError):
    """Raised when a provider is not registered."""


def create_llm_client(
    provider: str,
    model: str,
    settings: Settings | None = None,
    **kwargs: object,
) -> BaseLLMClient:
    """Instantiate the adapter for ``provider``.

    Raises:
        UnsupportedProviderError: If provider is not registered.
    """
    if provider not in _PROVIDER_REGISTRY:
        raise UnsupportedProviderError(
            f"Unsupported LLM provider: {provider!r}. "
            f"Available: {', '.join(sorted(_PROVIDER_REGISTRY))}"
        )

    module_path, class_name = _PROVIDER_REGISTRY[provider].rsplit(".", 1)
    adapter_cls = getattr(importlib.import_module(module_path), class_name)

    init_kwargs = dict(kwargs)
    init_kwargs["model"] = model
    if settings is not None and provider == "anthropic":
        init_kwargs.setdefault("api_key", settings.anthropic_api_key)
        init_kwargs.setdefault("timeout_s", settings.llm_timeout_s)

    logger.debug("Creating LLM client: provider=%s, model=%s", provider, model)
    return adapter_cls(**init_kwargs)


def create_default_client(settings: Settings) -> BaseLLMClient | None:
    """Client for the configured provider, or None when no credential is set."""
    if not settings.reasoning_enabled:
        logger.info("No reasoning-service credential configured; AI stages will be skipped")
        return None
    return create_llm_client(settings.llm_provider, settings.llm_default_model, settings)


def register_provider(name: str, class_path: str) -> None:
    """Register a custom provider adapter by fully qualified class path."""
    _PROVIDER_REGISTRY[name] = class_path
    logger.info("Registered LLM provider: %s -> %s", name, class_path)
