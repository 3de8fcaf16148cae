"""AI provider registry.

The built-in providers (openai, anthropic, gemini) are always registered.
Further providers are discovered via setuptools entry points (group
``devprofile.providers``); a plugin may also replace a built-in by name.
Provider selection happens once, when the engine is initialized.
"""
from __future__ import annotations

import logging
from importlib.metadata import entry_points
from typing import Any, Optional

from devprofile.core.config_service import ProviderSettings
from devprofile.errors import UnsupportedProviderError

from .base import AIProvider, BaseProvider, GenerateOptions

logger = logging.getLogger("devprofile.providers")

PROVIDER_GROUP = "devprofile.providers"

# Alternate names accepted in configuration
ALIASES = {
    "claude": "anthropic",
    "google": "gemini",
}

# Registry of available providers (populated on first use)
PROVIDERS: dict[str, type] = {}


def discover_providers() -> dict[str, type]:
    """Load provider classes registered under the ``devprofile.providers`` group."""
    plugins = {}
    for ep in entry_points(group=PROVIDER_GROUP):
        try:
            plugins[ep.name] = ep.load()
            logger.debug("Loaded provider plugin %s from %s", ep.name, ep.value)
        except Exception as e:
            logger.warning("Failed to load provider plugin %s: %s", ep.name, e)
    return plugins


def _register_defaults() -> None:
    if PROVIDERS:
        return

    from .anthropic_provider import AnthropicProvider
    from .gemini_provider import GeminiProvider
    from .openai_provider import OpenAIProvider

    PROVIDERS.update({
        "openai": OpenAIProvider,
        "anthropic": AnthropicProvider,
        "gemini": GeminiProvider,
    })
    discovered = discover_providers()
    if discovered:
        PROVIDERS.update(discovered)
        logger.debug("Registered %d providers: %s", len(PROVIDERS), sorted(PROVIDERS))


def get_provider_names() -> list[str]:
    """Get sorted list of all registered provider names."""
    _register_defaults()
    return sorted(PROVIDERS.keys())


def resolve_provider_name(name: str) -> str:
    """Normalize a configured provider name, applying aliases.

    Raises:
        UnsupportedProviderError: If no provider is registered under the name.
    """
    _register_defaults()
    key = (name or "").strip().lower()
    key = ALIASES.get(key, key)
    if key not in PROVIDERS:
        raise UnsupportedProviderError(name, available=get_provider_names())
    return key


def create_provider(
    name: str, settings: ProviderSettings, client: Optional[Any] = None
) -> AIProvider:
    """Instantiate the provider registered under ``name`` (aliases allowed)."""
    provider_cls = PROVIDERS[resolve_provider_name(name)]
    return provider_cls(settings, client=client)


def reset_providers() -> None:
    """Clear the registry so the next lookup rediscovers plugins."""
    PROVIDERS.clear()


__all__ = [
    "AIProvider",
    "ALIASES",
    "BaseProvider",
    "GenerateOptions",
    "PROVIDERS",
    "create_provider",
    "get_provider_names",
    "resolve_provider_name",
    "reset_providers",
]
