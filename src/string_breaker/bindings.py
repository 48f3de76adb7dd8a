"""Source binding store: session identifier to live origin span."""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from string_breaker.models import Position, SessionState, SourceBinding, Span


@dataclass(slots=True)
class _Entry:
    binding: SourceBinding
    state: SessionState = SessionState.OPEN


def shift_position(position: Position, old_end: Position, new_end: Position) -> Position:
    """Move a position that follows a replaced range by the size delta of that range."""
    if position < old_end:
        return position
    if position.line == old_end.line:
        return Position(new_end.line, new_end.column + (position.column - old_end.column))
    return Position(position.line + (new_end.line - old_end.line), position.column)


@dataclass(slots=True)
class SourceBindingStore:
    """Explicit mapping from session identifier to SourceBinding.

    Only the synchronization engine mutates the store, and only after a write
    to the origin document has succeeded.
    """

    _entries: dict[str, _Entry] = field(default_factory=dict)

    def bind(self, session_id: str, binding: SourceBinding) -> None:
        """Record a new session binding."""
        if session_id in self._entries:
            raise KeyError(f"Session already bound: {session_id}")
        self._entries[session_id] = _Entry(binding=binding)

    def get(self, session_id: str) -> SourceBinding | None:
        """Return the binding for a session, if any."""
        entry = self._entries.get(session_id)
        if entry is None:
            return None
        return entry.binding

    def update(self, session_id: str, span: Span, quoted_text: str) -> SourceBinding:
        """Store the span and quoted text that were just written."""
        entry = self._require(session_id)
        entry.binding = replace(entry.binding, span=span, last_known_quoted_text=quoted_text)
        return entry.binding

    def release(self, session_id: str) -> SourceBinding | None:
        """Drop a session binding and return it."""
        entry = self._entries.pop(session_id, None)
        if entry is None:
            return None
        return entry.binding

    def state(self, session_id: str) -> SessionState:
        """Return session state; unknown sessions are closed."""
        entry = self._entries.get(session_id)
        if entry is None:
            return SessionState.CLOSED
        return entry.state

    def set_state(self, session_id: str, state: SessionState) -> None:
        """Move a live session to a new state."""
        self._require(session_id).state = state

    def session_ids(self) -> tuple[str, ...]:
        """Return live session identifiers in creation order."""
        return tuple(self._entries.keys())

    def for_document(self, document: str) -> tuple[tuple[str, SourceBinding], ...]:
        """Return live bindings that reference a document."""
        return tuple(
            (session_id, entry.binding)
            for session_id, entry in self._entries.items()
            if entry.binding.origin_document == document
        )

    def overlapping(self, document: str, span: Span) -> str | None:
        """Return the first session whose span overlaps span in document."""
        for session_id, binding in self.for_document(document):
            if binding.span.overlaps(span) or binding.span == span:
                return session_id
        return None

    def shift_after(
        self,
        document: str,
        old_end: Position,
        new_end: Position,
        exclude: str | None = None,
    ) -> None:
        """Shift bindings that start at or after a replaced range's old end."""
        if old_end == new_end:
            return
        for session_id, binding in self.for_document(document):
            if session_id == exclude or binding.span.start < old_end:
                continue
            shifted = Span(
                shift_position(binding.span.start, old_end, new_end),
                shift_position(binding.span.end, old_end, new_end),
            )
            self._entries[session_id].binding = replace(binding, span=shifted)

    def _require(self, session_id: str) -> _Entry:
        entry = self._entries.get(session_id)
        if entry is None:
            raise KeyError(f"Unknown session: {session_id}")
        return entry
