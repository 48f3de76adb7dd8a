"""Structural provider protocol and result types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from string_breaker.models import Position, Span


@dataclass(slots=True, frozen=True)
class StringNode:
    """String literal found under a position, quotes included."""

    span: Span
    quote_char: str
    text: str


@dataclass(slots=True, frozen=True)
class NotFound:
    """Provider parsed the text but found no string at the position."""

    reason: str


@dataclass(slots=True, frozen=True)
class Unavailable:
    """Provider cannot serve this content at all."""

    reason: str


ProviderResult = StringNode | NotFound | Unavailable


class StructuralProvider(Protocol):
    """Protocol implemented by structural string providers."""

    name: str

    def supports_path(self, path: str) -> bool:
        """Return True when provider can parse a document at path."""

    def find_string_at(self, path: str, text: str, position: Position) -> ProviderResult:
        """Return the string literal enclosing position, if any."""


def offset_to_position(text: str, offset: int) -> Position:
    """Convert a character offset into a 1-based line, 0-based column position."""
    line_start = text.rfind("\n", 0, offset) + 1
    line = text.count("\n", 0, offset) + 1
    return Position(line, offset - line_start)


def position_to_offset(text: str, position: Position) -> int | None:
    """Convert a position into a character offset, or None when outside the text."""
    lines = text.split("\n")
    if position.line < 1 or position.line > len(lines):
        return None
    if position.column < 0 or position.column > len(lines[position.line - 1]):
        return None
    offset = sum(len(line) + 1 for line in lines[: position.line - 1])
    return offset + position.column
