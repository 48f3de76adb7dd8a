"""In-memory host used by the STDIO server and the test suite."""

from __future__ import annotations

from dataclasses import dataclass, field

from string_breaker.host.base import EDIT_SURFACE_KIND
from string_breaker.models import Position, Selection, Span


@dataclass(slots=True)
class MemoryDocument:
    """Origin document stored as a list of lines."""

    document_id: str
    lines: list[str] = field(default_factory=lambda: [""])
    path: str = ""
    writable: bool = True

    @classmethod
    def from_text(
        cls, document_id: str, text: str, path: str = "", writable: bool = True
    ) -> MemoryDocument:
        """Split text on newline; a trailing newline leaves an empty last line."""
        return cls(document_id=document_id, lines=text.split("\n"), path=path, writable=writable)

    def text(self) -> str:
        """Return the document content joined with newline."""
        return "\n".join(self.lines)


@dataclass(slots=True)
class _Surface:
    kind: str
    lines: list[str]


class MemoryWorkspace:
    """Documents, editing surfaces, cursors and selections held in memory."""

    def __init__(self) -> None:
        self._documents: dict[str, MemoryDocument] = {}
        self._surfaces: dict[str, _Surface] = {}
        self._selections: dict[str, Selection] = {}
        self._cursors: dict[str, Position] = {}
        self._focused: tuple[str, Position] | None = None
        self._document_counter = 0
        self._surface_counter = 0

    # Workspace management

    def open_document(
        self,
        text: str,
        *,
        document_id: str | None = None,
        path: str = "",
        writable: bool = True,
    ) -> str:
        """Open a document and return its identifier."""
        if document_id is None:
            self._document_counter += 1
            document_id = f"doc-{self._document_counter:04d}"
        if document_id in self._documents:
            raise ValueError(f"Document already open: {document_id}")
        self._documents[document_id] = MemoryDocument.from_text(
            document_id, text, path=path, writable=writable
        )
        self._cursors[document_id] = Position(1, 0)
        return document_id

    def close_document(self, document: str) -> None:
        """Close a document; live bindings to it become invalid."""
        self._require(document)
        del self._documents[document]
        self._selections.pop(document, None)
        self._cursors.pop(document, None)

    def document_ids(self) -> tuple[str, ...]:
        """Return open document identifiers in opening order."""
        return tuple(self._documents.keys())

    def document_text(self, document: str) -> str:
        """Return the full document text."""
        return self._require(document).text()

    def replace_document_text(self, document: str, text: str) -> None:
        """Overwrite a document wholesale, as an external edit would."""
        record = self._require(document)
        record.lines = text.split("\n")

    def set_cursor(self, document: str, position: Position) -> None:
        """Move the cursor of a document."""
        self._require(document)
        self._cursors[document] = position

    def clear_selection(self, document: str) -> None:
        """Drop the active selection of a document."""
        self._selections.pop(document, None)

    def write_surface(self, surface_id: str, text: str) -> None:
        """Replace the content of an editing surface."""
        self._require_surface(surface_id).lines = text.split("\n")

    def surface_text(self, surface_id: str) -> str:
        """Return surface content joined with newline."""
        return "\n".join(self._require_surface(surface_id).lines)

    def surface_ids(self) -> tuple[str, ...]:
        """Return live surface identifiers in creation order."""
        return tuple(self._surfaces.keys())

    @property
    def focused(self) -> tuple[str, Position] | None:
        """Return the document and cursor that last received focus."""
        return self._focused

    # DocumentAccessor

    def has_document(self, document: str) -> bool:
        return document in self._documents

    def document_path(self, document: str) -> str:
        return self._require(document).path

    def is_writable(self, document: str) -> bool:
        return self._require(document).writable

    def line_count(self, document: str) -> int:
        return len(self._require(document).lines)

    def get_line(self, document: str, line: int) -> str:
        record = self._require(document)
        if line < 1 or line > len(record.lines):
            raise IndexError(f"Line {line} is outside document {document}.")
        return record.lines[line - 1]

    def get_text(self, document: str, span: Span) -> str:
        record = self._require(document)
        self._check_span(record, span)
        start_index = span.start.line - 1
        end_index = span.end.line - 1
        if start_index == end_index:
            return record.lines[start_index][span.start.column : span.end.column]
        parts = [record.lines[start_index][span.start.column :]]
        parts.extend(record.lines[start_index + 1 : end_index])
        parts.append(record.lines[end_index][: span.end.column])
        return "\n".join(parts)

    def set_text(self, document: str, span: Span, replacement_lines: list[str]) -> Position:
        record = self._require(document)
        if not record.writable:
            raise PermissionError(f"Document is read-only: {document}")
        self._check_span(record, span)
        start_index = span.start.line - 1
        end_index = span.end.line - 1
        prefix = record.lines[start_index][: span.start.column]
        suffix = record.lines[end_index][span.end.column :]
        replacement = list(replacement_lines) or [""]
        if len(replacement) == 1:
            new_lines = [prefix + replacement[0] + suffix]
            end = Position(span.start.line, len(prefix) + len(replacement[0]))
        else:
            new_lines = [prefix + replacement[0], *replacement[1:-1], replacement[-1] + suffix]
            end = Position(span.start.line + len(replacement) - 1, len(replacement[-1]))
        record.lines[start_index : end_index + 1] = new_lines
        return end

    # SurfaceManager

    def create_surface(self, content: str, kind: str = EDIT_SURFACE_KIND) -> str:
        self._surface_counter += 1
        surface_id = f"surface-{self._surface_counter:04d}"
        self._surfaces[surface_id] = _Surface(kind=kind, lines=content.split("\n"))
        return surface_id

    def destroy_surface(self, surface_id: str, *, force: bool = False) -> None:
        if surface_id not in self._surfaces:
            if force:
                return
            raise KeyError(f"Unknown surface: {surface_id}")
        del self._surfaces[surface_id]

    def get_surface_lines(self, surface_id: str) -> list[str]:
        return list(self._require_surface(surface_id).lines)

    def surface_kind(self, surface_id: str) -> str | None:
        surface = self._surfaces.get(surface_id)
        if surface is None:
            return None
        return surface.kind

    def focus_document(self, document: str, position: Position) -> None:
        self._require(document)
        self._cursors[document] = position
        self._focused = (document, position)

    # SelectionProvider

    def get_active_selection(self, document: str) -> Selection | None:
        self._require(document)
        return self._selections.get(document)

    def get_cursor(self, document: str) -> Position:
        self._require(document)
        return self._cursors.get(document, Position(1, 0))

    def set_selection(self, document: str, selection: Selection) -> None:
        self._require(document)
        self._selections[document] = selection

    def _require(self, document: str) -> MemoryDocument:
        record = self._documents.get(document)
        if record is None:
            raise KeyError(f"Unknown document: {document}")
        return record

    def _require_surface(self, surface_id: str) -> _Surface:
        surface = self._surfaces.get(surface_id)
        if surface is None:
            raise KeyError(f"Unknown surface: {surface_id}")
        return surface

    @staticmethod
    def _check_span(record: MemoryDocument, span: Span) -> None:
        if span.start.line < 1 or span.end.line > len(record.lines):
            raise IndexError(f"Span lines are outside document {record.document_id}.")
        if span.start.column > len(record.lines[span.start.line - 1]):
            raise IndexError("Span start column is past the end of its line.")
        if span.end.column > len(record.lines[span.end.line - 1]):
            raise IndexError("Span end column is past the end of its line.")
