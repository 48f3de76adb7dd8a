"""Provider registry with deterministic selection behavior."""

from __future__ import annotations

from dataclasses import dataclass, field

from string_breaker.providers.base import StructuralProvider


@dataclass(slots=True)
class ProviderRegistry:
    """Ordered provider registry with explicit fallback provider."""

    _providers: list[StructuralProvider] = field(default_factory=list)
    _fallback: StructuralProvider | None = None

    def register(self, provider: StructuralProvider, *, fallback: bool = False) -> None:
        """Register a provider in deterministic insertion order."""
        if fallback:
            self._fallback = provider
            return
        self._providers.append(provider)

    def select(self, path: str) -> StructuralProvider:
        """Select the first provider that supports the path, else fallback."""
        for provider in self._providers:
            if provider.supports_path(path):
                return provider
        if self._fallback is not None:
            return self._fallback
        raise LookupError(f"No structural provider supports path: {path or '<unnamed>'}")

    @property
    def fallback(self) -> StructuralProvider | None:
        """Return the fallback provider, if one is registered."""
        return self._fallback

    def names(self) -> tuple[str, ...]:
        """Return registered provider names in deterministic order."""
        ordered = [provider.name for provider in self._providers]
        if self._fallback is not None:
            ordered.append(self._fallback.name)
        return tuple(ordered)
