"""Synchronization engine: editing sessions and in-place string operations."""

from __future__ import annotations

from collections.abc import Callable

from string_breaker.bindings import SourceBindingStore
from string_breaker.codec import escape, is_quote_char, unescape
from string_breaker.config import EditLimits, PreviewConfig
from string_breaker.errors import BreakerError, ErrorCode, OperationResult
from string_breaker.host.base import EDIT_SURFACE_KIND, EditorHost
from string_breaker.locator import StringLocator
from string_breaker.logging import AuditEvent, JsonlAuditLogger, sanitize_arguments, utc_timestamp
from string_breaker.models import (
    Position,
    Selection,
    SelectionMode,
    SessionState,
    SourceBinding,
    Span,
    StringInfo,
)
from string_breaker.providers.registry import ProviderRegistry

QUOTE_NAMES = {"double": '"', "single": "'", "backtick": "`"}

TRUNCATION_TRAILER = "[Content truncated - Total length: {total} characters]"
FLOAT_THRESHOLD = 100
NOTIFY_THRESHOLD = 200

_ACTIONS = {
    "break_string": "breaking string",
    "preview": "previewing string",
    "synchronize": "synchronizing string",
    "save": "saving string",
    "cancel": "canceling edit",
    "escape_selection": "escaping string",
    "unescape_selection": "unescaping string",
    "wrap_selection": "wrapping selection",
    "unwrap_selection": "unwrapping string",
}


def resolve_quote(value: str) -> str:
    """Map a quote name or quote character to the quote character."""
    if value in QUOTE_NAMES:
        return QUOTE_NAMES[value]
    if is_quote_char(value):
        return value
    raise BreakerError(
        code=ErrorCode.INVALID_ARGUMENT,
        message=f"Unsupported quote: {value!r}. Use single, double or backtick.",
    )


def replacement_end(start: Position, lines: list[str]) -> Position:
    """Return the exclusive end of ``lines`` written at ``start``."""
    if len(lines) <= 1:
        return Position(start.line, start.column + len(lines[0] if lines else ""))
    return Position(start.line + len(lines) - 1, len(lines[-1]))


def quoted_inner(binding: SourceBinding) -> str:
    """Return the binding's last known text without its delimiters."""
    text = binding.last_known_quoted_text
    if binding.delimited:
        return text[1:-1]
    return text


class StringBreakerEngine:
    """Drive editing sessions from break to save or cancel.

    Every public operation returns an OperationResult and records one audit
    event. Expected failures arrive as BreakerError; anything else is wrapped
    as an unexpected error with the operation name as context.
    """

    def __init__(
        self,
        host: EditorHost,
        providers: ProviderRegistry,
        *,
        preview: PreviewConfig | None = None,
        limits: EditLimits | None = None,
        bindings: SourceBindingStore | None = None,
        audit_logger: JsonlAuditLogger | None = None,
    ) -> None:
        self._host = host
        self._locator = StringLocator(host, host, providers)
        self._preview = preview or PreviewConfig()
        self._limits = limits or EditLimits()
        self._bindings = bindings if bindings is not None else SourceBindingStore()
        self._audit_logger = audit_logger

    @property
    def bindings(self) -> SourceBindingStore:
        """Return the binding store owned by this engine."""
        return self._bindings

    # Sessions

    def break_string(
        self,
        document: str,
        position: Position | None = None,
        *,
        force: bool = False,
    ) -> OperationResult:
        """Open the string under the cursor or selection in a new editing surface."""
        return self._run(
            "break_string",
            {"document": document, "position": position, "force": force},
            lambda: self._break_string(document, position, force),
        )

    def preview(self, document: str, position: Position | None = None) -> OperationResult:
        """Return the unescaped string with a display hint, without opening a session."""
        return self._run(
            "preview",
            {"document": document, "position": position},
            lambda: self._preview_string(document, position),
        )

    def synchronize(self, session_id: str) -> OperationResult:
        """Write the editing surface back to the origin document, keeping the session."""
        return self._run(
            "synchronize",
            {"session_id": session_id},
            lambda: self._synchronize(session_id),
            session_id=session_id,
            cleanup=self._release_orphaned,
        )

    def save(self, session_id: str) -> OperationResult:
        """Synchronize, then close the session and return focus to the origin."""
        return self._run(
            "save",
            {"session_id": session_id},
            lambda: self._save(session_id),
            session_id=session_id,
            cleanup=self._release_orphaned,
        )

    def cancel(self, session_id: str) -> OperationResult:
        """Discard the editing surface; the origin document is left untouched."""
        return self._run(
            "cancel",
            {"session_id": session_id},
            lambda: self._cancel(session_id),
            session_id=session_id,
            unexpected_code=ErrorCode.CANCEL_FAILED,
        )

    def sessions(self) -> list[dict[str, object]]:
        """Return live sessions with their bindings."""
        payload: list[dict[str, object]] = []
        for session_id in self._bindings.session_ids():
            binding = self._bindings.get(session_id)
            if binding is None:
                continue
            payload.append(
                {
                    "session_id": session_id,
                    "state": self._bindings.state(session_id).value,
                    "document": binding.origin_document,
                    "span": binding.span.to_dict(),
                    "quote_type": binding.quote_type,
                    "source_type": binding.source_type.value,
                }
            )
        return payload

    # In-place operations

    def escape_selection(
        self,
        document: str,
        position: Position | None = None,
        quote: str | None = None,
    ) -> OperationResult:
        """Escape the located string in place."""
        return self._run(
            "escape_selection",
            {"document": document, "position": position, "quote": quote},
            lambda: self._transform_in_place(document, position, quote, escaping=True),
        )

    def unescape_selection(
        self, document: str, position: Position | None = None
    ) -> OperationResult:
        """Unescape the located string in place."""
        return self._run(
            "unescape_selection",
            {"document": document, "position": position},
            lambda: self._transform_in_place(document, position, None, escaping=False),
        )

    def wrap_selection(self, document: str, quote: str = "double") -> OperationResult:
        """Escape the active selection and surround it with quotes."""
        return self._run(
            "wrap_selection",
            {"document": document, "quote": quote},
            lambda: self._wrap(document, quote),
        )

    def unwrap_selection(self, document: str, position: Position | None = None) -> OperationResult:
        """Replace a quoted string, delimiters included, with its unescaped content."""
        return self._run(
            "unwrap_selection",
            {"document": document, "position": position},
            lambda: self._unwrap(document, position),
        )

    # Operation bodies

    def _break_string(
        self, document: str, position: Position | None, force: bool
    ) -> OperationResult:
        self._require_writable(document)
        info = self._locator.locate(document, position)
        if not info.inner_content:
            raise BreakerError(
                code=ErrorCode.EMPTY_CONTENT,
                message="String content is empty. Nothing to edit.",
            )
        if len(info.inner_content) > self._limits.max_string_length and not force:
            raise BreakerError(
                code=ErrorCode.CONTENT_TOO_LARGE,
                message=(
                    f"String is very large ({len(info.inner_content)} characters, limit "
                    f"{self._limits.max_string_length})."
                ),
            )
        conflict = self._bindings.overlapping(document, info.span)
        if conflict is not None:
            raise BreakerError(
                code=ErrorCode.SESSION_OVERLAP,
                message=f"Session {conflict} is already editing an overlapping range.",
            )

        literal = unescape(info.inner_content)
        session_id = self._host.create_surface(literal, kind=EDIT_SURFACE_KIND)
        self._bindings.bind(
            session_id,
            SourceBinding(
                origin_document=document,
                span=info.span,
                quote_type=info.quote_type,
                last_known_quoted_text=info.content,
                delimited=info.delimited,
                source_type=info.source_type,
            ),
        )
        return OperationResult.ok(
            "String editor opened.",
            session_id=session_id,
            source_type=info.source_type.value,
            quote_type=info.quote_type,
            content_length=len(literal),
            line_count=len(literal.split("\n")),
            span=info.span.to_dict(),
        )

    def _preview_string(self, document: str, position: Position | None) -> OperationResult:
        if not self._host.has_document(document):
            raise _invalid_document(document)
        info = self._locator.locate(document, position)
        literal = unescape(info.inner_content)
        total = len(literal)
        shown = literal
        truncated = total > self._preview.max_length
        if truncated:
            trailer = TRUNCATION_TRAILER.format(total=total)
            shown = f"{literal[: self._preview.max_length]}\n\n{trailer}"

        if self._preview.use_float and total > FLOAT_THRESHOLD:
            display = "float"
        elif total <= NOTIFY_THRESHOLD:
            display = "notify"
        else:
            display = "echo"

        data: dict[str, object] = {
            "content": shown,
            "total_length": total,
            "truncated": truncated,
            "display": display,
            "source_type": info.source_type.value,
            "quote_type": info.quote_type,
        }
        if display == "float":
            data["window"] = {
                "width": self._preview.width,
                "height": min(self._preview.height, len(shown.split("\n")) + 2),
            }
        return OperationResult.ok("Preview ready.", **data)

    def _synchronize(self, session_id: str) -> OperationResult:
        binding = self._require_session(session_id)
        edited = "\n".join(self._host.get_surface_lines(session_id))
        if edited == unescape(quoted_inner(binding)):
            return OperationResult.ok(
                "No changes to synchronize.",
                changed=False,
                content_length=len(binding.last_known_quoted_text),
                line_count=len(binding.last_known_quoted_text.split("\n")),
                end=binding.span.end.as_list(),
            )

        quote = binding.quote_type
        if binding.delimited:
            full = f"{quote}{escape(edited, quote)}{quote}"
        elif quote and edited.startswith(quote):
            # A truncated selection keeps its opening delimiter as written.
            full = quote + escape(edited[1:], quote)
        else:
            full = escape(edited, quote)
        lines = full.split("\n")
        self._validate_binding(binding)

        self._bindings.set_state(session_id, SessionState.SYNCHRONIZING)
        try:
            new_end = self._write(binding.origin_document, binding.span, lines)
        finally:
            self._bindings.set_state(session_id, SessionState.OPEN)
        self._bindings.update(session_id, Span(binding.span.start, new_end), full)
        return OperationResult.ok(
            "String synchronized.",
            changed=True,
            content_length=len(full),
            line_count=len(lines),
            end=new_end.as_list(),
        )

    def _save(self, session_id: str) -> OperationResult:
        self._require_edit_surface(session_id)
        synced = self._synchronize(session_id)
        binding = self._bindings.release(session_id)
        self._host.destroy_surface(session_id)
        if binding is not None:
            self._host.focus_document(binding.origin_document, binding.span.start)
        changed = bool(synced.data.get("changed"))
        message = "String saved to the original document." if changed else "No changes to save."
        return OperationResult.ok(message, **synced.data)

    def _cancel(self, session_id: str) -> OperationResult:
        binding = self._bindings.release(session_id)
        if binding is None and self._host.surface_kind(session_id) != EDIT_SURFACE_KIND:
            raise BreakerError(
                code=ErrorCode.NOT_IN_EDIT_SURFACE,
                message=f"No string editing session: {session_id}",
            )
        try:
            self._host.destroy_surface(session_id)
        except KeyError:
            self._host.destroy_surface(session_id, force=True)
        if binding is not None and self._host.has_document(binding.origin_document):
            self._host.focus_document(binding.origin_document, binding.span.start)
        return OperationResult.ok("Edit canceled.", had_binding=binding is not None)

    def _transform_in_place(
        self,
        document: str,
        position: Position | None,
        quote: str | None,
        *,
        escaping: bool,
    ) -> OperationResult:
        self._require_writable(document)
        info = self._locator.locate(document, position)
        if info.delimited:
            span = _inner_span(info)
            text = info.inner_content
        else:
            span = info.span
            text = info.content

        if escaping:
            quote_char = resolve_quote(quote) if quote is not None else info.quote_type or '"'
            replacement = escape(text, quote_char)
        else:
            replacement = unescape(text)

        if replacement == text:
            self._select_range(document, span)
            action = "escape" if escaping else "unescape"
            return OperationResult.ok(f"Nothing to {action}.", changed=False, span=span.to_dict())
        new_end = self._write(document, span, replacement.split("\n"))
        written = Span(span.start, new_end)
        self._select_range(document, written)
        message = "String escaped." if escaping else "String unescaped."
        return OperationResult.ok(message, changed=True, span=written.to_dict())

    def _wrap(self, document: str, quote: str) -> OperationResult:
        self._require_writable(document)
        quote_char = resolve_quote(quote)
        selection = self._host.get_active_selection(document)
        if selection is None:
            raise BreakerError(
                code=ErrorCode.INVALID_SELECTION,
                message="Wrapping requires an active selection.",
            )
        info = self._locator.from_selection(document, selection)
        wrapped = f"{quote_char}{escape(info.content, quote_char)}{quote_char}"
        new_end = self._write(document, info.span, wrapped.split("\n"))
        written = Span(info.span.start, new_end)
        self._select_range(document, written)
        return OperationResult.ok(
            "Selection wrapped.", quote_type=quote_char, span=written.to_dict()
        )

    def _unwrap(self, document: str, position: Position | None) -> OperationResult:
        self._require_writable(document)
        info = self._locator.locate(document, position)
        if not info.delimited:
            raise BreakerError(
                code=ErrorCode.INVALID_SELECTION,
                message="Text to unwrap must be enclosed in matching quotes.",
            )
        literal = unescape(info.inner_content)
        new_end = self._write(document, info.span, literal.split("\n"))
        written = Span(info.span.start, new_end)
        self._select_range(document, written)
        return OperationResult.ok("String unwrapped.", span=written.to_dict())

    # Helpers

    def _require_writable(self, document: str) -> None:
        if not self._host.has_document(document):
            raise _invalid_document(document)
        if not self._host.is_writable(document):
            raise BreakerError(
                code=ErrorCode.BUFFER_NOT_MODIFIABLE,
                message="Buffer is not modifiable.",
            )

    def _require_edit_surface(self, session_id: str) -> None:
        kind = self._host.surface_kind(session_id)
        if kind is None and self._bindings.release(session_id) is not None:
            raise BreakerError(
                code=ErrorCode.NOT_IN_EDIT_SURFACE,
                message=f"Editing surface {session_id} no longer exists; session closed.",
            )
        if kind != EDIT_SURFACE_KIND:
            raise BreakerError(
                code=ErrorCode.NOT_IN_EDIT_SURFACE,
                message=f"{session_id} is not a string editing surface.",
            )

    def _require_session(self, session_id: str) -> SourceBinding:
        self._require_edit_surface(session_id)
        binding = self._bindings.get(session_id)
        if binding is None:
            raise BreakerError(
                code=ErrorCode.NO_SOURCE_BINDING,
                message="Source binding for this editing surface was not found.",
            )
        self._require_writable(binding.origin_document)
        return binding

    def _validate_binding(self, binding: SourceBinding) -> None:
        document = binding.origin_document
        span = binding.span
        if span.end.line > self._host.line_count(document):
            raise _stale("Original string lines no longer exist in the document.")
        if span.start.column > len(self._host.get_line(document, span.start.line)):
            raise _stale("Original string start column is past the end of its line.")
        if span.end.column > len(self._host.get_line(document, span.end.line)):
            raise _stale("Original string end column is past the end of its line.")
        if self._host.get_text(document, span) != binding.last_known_quoted_text:
            raise _stale("Original string was modified outside this session.")

    def _write(self, document: str, span: Span, lines: list[str]) -> Position:
        try:
            self._host.set_text(document, span, lines)
        except PermissionError as error:
            raise BreakerError(
                code=ErrorCode.BUFFER_NOT_MODIFIABLE,
                message=f"Buffer is not modifiable: {error}",
            ) from error
        new_end = replacement_end(span.start, lines)
        # The binding being written starts before span.end and is never shifted here.
        self._bindings.shift_after(document, span.end, new_end)
        return new_end

    def _select_range(self, document: str, span: Span) -> None:
        if span.start == span.end:
            self._host.focus_document(document, span.start)
            return
        end = span.end
        if end.column == 0 and end.line > span.start.line:
            # A trailing newline ends the selection on the line before it.
            previous = end.line - 1
            end = Position(previous, len(self._host.get_line(document, previous)))
        self._host.set_selection(
            document,
            Selection(
                start=Position(span.start.line, span.start.column + 1),
                end=Position(end.line, max(end.column, 1)),
                mode=SelectionMode.CHARWISE,
            ),
        )

    def _release_orphaned(self, session_id: str) -> None:
        if self._host.surface_kind(session_id) is None:
            self._bindings.release(session_id)

    def _run(
        self,
        operation: str,
        arguments: dict[str, object],
        body: Callable[[], OperationResult],
        *,
        session_id: str | None = None,
        unexpected_code: ErrorCode = ErrorCode.UNEXPECTED_ERROR,
        cleanup: Callable[[str], None] | None = None,
    ) -> OperationResult:
        try:
            result = body()
        except BreakerError as error:
            result = OperationResult.from_error(error)
        except Exception as error:
            if cleanup is not None and session_id is not None:
                cleanup(session_id)
            result = OperationResult.unexpected(_ACTIONS[operation], error, code=unexpected_code)
        if session_id is None:
            created = result.data.get("session_id")
            session_id = created if isinstance(created, str) else None
        self._audit(operation, session_id, arguments, result)
        return result

    def _audit(
        self,
        operation: str,
        session_id: str | None,
        arguments: dict[str, object],
        result: OperationResult,
    ) -> None:
        if self._audit_logger is None:
            return
        self._audit_logger.append(
            AuditEvent(
                timestamp=utc_timestamp(),
                operation=operation,
                session_id=session_id,
                ok=result.success,
                error_code=result.error_code.value if result.error_code else None,
                metadata=sanitize_arguments(arguments),
            )
        )


def _inner_span(info: StringInfo) -> Span:
    return Span(
        Position(info.start_pos.line, info.start_pos.column + 1),
        Position(info.end_pos.line, info.end_pos.column - 1),
    )


def _invalid_document(document: str) -> BreakerError:
    return BreakerError(
        code=ErrorCode.INVALID_SOURCE_DOCUMENT,
        message=f"Source document is no longer valid: {document}",
    )


def _stale(message: str) -> BreakerError:
    return BreakerError(code=ErrorCode.POSITION_INVALIDATED, message=message)
