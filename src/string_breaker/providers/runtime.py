"""Runtime provider registry construction."""

from __future__ import annotations

from string_breaker.config import ProvidersConfig
from string_breaker.providers.lexical import LexicalStringProvider
from string_breaker.providers.registry import ProviderRegistry
from string_breaker.providers.treesitter import TreeSitterStringProvider


def build_provider_registry(config: ProvidersConfig) -> ProviderRegistry:
    """Build provider registry from effective config."""
    registry = ProviderRegistry()
    if config.treesitter_enabled:
        registry.register(TreeSitterStringProvider())
    if config.lexical_fallback_enabled:
        registry.register(LexicalStringProvider(), fallback=True)
    return registry
