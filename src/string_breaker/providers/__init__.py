"""Structural string providers."""

from .base import (
    NotFound,
    ProviderResult,
    StringNode,
    StructuralProvider,
    Unavailable,
    offset_to_position,
    position_to_offset,
)
from .lexical import (
    LexicalRules,
    LexicalStringProvider,
    LiteralRegion,
    rules_for_path,
    scan_string_literals,
)
from .registry import ProviderRegistry
from .runtime import build_provider_registry
from .treesitter import TreeSitterStringProvider

__all__ = [
    "LexicalRules",
    "LexicalStringProvider",
    "LiteralRegion",
    "NotFound",
    "ProviderRegistry",
    "ProviderResult",
    "StringNode",
    "StructuralProvider",
    "TreeSitterStringProvider",
    "Unavailable",
    "build_provider_registry",
    "offset_to_position",
    "position_to_offset",
    "rules_for_path",
    "scan_string_literals",
]
