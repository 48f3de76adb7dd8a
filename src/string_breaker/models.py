"""Core records shared by the locator, binding store, and engine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SourceType(str, Enum):
    """Provenance of a located string."""

    STRUCTURAL = "structural"
    SELECTION = "selection"


class SelectionMode(str, Enum):
    """Granularity reported by the host selection primitive."""

    CHARWISE = "charwise"
    LINEWISE = "linewise"
    BLOCKWISE = "blockwise"


class SessionState(str, Enum):
    """Lifecycle states of one editing session."""

    OPEN = "open"
    SYNCHRONIZING = "synchronizing"
    CLOSED = "closed"


@dataclass(slots=True, frozen=True, order=True)
class Position:
    """Document coordinate: 1-based line, 0-based column."""

    line: int
    column: int

    def as_list(self) -> list[int]:
        """Return a JSON-friendly ``[line, column]`` pair."""
        return [self.line, self.column]


@dataclass(slots=True, frozen=True)
class Span:
    """Half-open range ``[start, end)`` in one document."""

    start: Position
    end: Position

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError("Span start must not come after span end.")

    def overlaps(self, other: Span) -> bool:
        """Return True when the two spans share at least one character."""
        return self.start < other.end and other.start < self.end

    def to_dict(self) -> dict[str, object]:
        """Return serializable span payload."""
        return {"start": self.start.as_list(), "end": self.end.as_list()}


@dataclass(slots=True, frozen=True)
class StringInfo:
    """Normalized result of locating a string literal or selection."""

    content: str
    inner_content: str
    quote_type: str
    start_pos: Position
    end_pos: Position
    source_type: SourceType

    @property
    def span(self) -> Span:
        """Return the located range as a span."""
        return Span(self.start_pos, self.end_pos)

    @property
    def delimited(self) -> bool:
        """Return True when inner content was stripped of matching quotes."""
        return bool(self.quote_type) and len(self.inner_content) < len(self.content)


@dataclass(slots=True, frozen=True)
class Selection:
    """Raw selection as reported by the host, in host coordinates.

    Lines and columns are 1-based and the end column is inclusive.
    """

    start: Position
    end: Position
    mode: SelectionMode = SelectionMode.CHARWISE


@dataclass(slots=True, frozen=True)
class SourceBinding:
    """Live link from an editing session back to its origin span."""

    origin_document: str
    span: Span
    quote_type: str
    last_known_quoted_text: str
    delimited: bool
    source_type: SourceType
