"""Contracts the engine needs from the host editor."""

from __future__ import annotations

from typing import Protocol

from string_breaker.models import Position, Selection, Span

EDIT_SURFACE_KIND = "stringBreaker"


class DocumentAccessor(Protocol):
    """Read and write access to origin documents."""

    def has_document(self, document: str) -> bool:
        """Return True while the document is open in the host."""

    def document_path(self, document: str) -> str:
        """Return the path or name used to select a structural provider."""

    def is_writable(self, document: str) -> bool:
        """Return True when the document accepts edits."""

    def line_count(self, document: str) -> int:
        """Return the current number of lines."""

    def get_line(self, document: str, line: int) -> str:
        """Return one line by 1-based number, without separator."""

    def get_text(self, document: str, span: Span) -> str:
        """Return the text under a span, lines joined with newline."""

    def set_text(self, document: str, span: Span, replacement_lines: list[str]) -> Position:
        """Replace the span with the given lines and return the new end position."""


class SurfaceManager(Protocol):
    """Disposable editing surfaces."""

    def create_surface(self, content: str, kind: str = EDIT_SURFACE_KIND) -> str:
        """Create a surface holding content and return its identifier."""

    def destroy_surface(self, surface_id: str, *, force: bool = False) -> None:
        """Destroy a surface, discarding its content."""

    def get_surface_lines(self, surface_id: str) -> list[str]:
        """Return the surface content as lines."""

    def surface_kind(self, surface_id: str) -> str | None:
        """Return the surface kind, or None when no such surface exists."""

    def focus_document(self, document: str, position: Position) -> None:
        """Transfer control to a document with the cursor at position."""


class SelectionProvider(Protocol):
    """Cursor and selection state in host coordinates."""

    def get_active_selection(self, document: str) -> Selection | None:
        """Return the active selection or None when nothing is selected."""

    def get_cursor(self, document: str) -> Position:
        """Return the cursor as 1-based line, 0-based column."""

    def set_selection(self, document: str, selection: Selection) -> None:
        """Select a range after an in-place rewrite."""


class EditorHost(DocumentAccessor, SurfaceManager, SelectionProvider, Protocol):
    """Everything the engine needs from one host editor."""
