"""Locate string literals and selections as normalized StringInfo records."""

from __future__ import annotations

from string_breaker.codec import is_quote_char
from string_breaker.errors import BreakerError, ErrorCode
from string_breaker.host.base import DocumentAccessor, SelectionProvider
from string_breaker.models import Position, Selection, SelectionMode, SourceType, Span, StringInfo
from string_breaker.providers.base import NotFound, ProviderResult, Unavailable
from string_breaker.providers.registry import ProviderRegistry


def detect_quote_type(content: str) -> str:
    """Return the quote character opening content, or empty when unquoted.

    A truncated selection that only opens with a quote still reports it.
    """
    if not content:
        return ""
    first = content[0]
    if is_quote_char(first):
        return first
    return ""


def extract_inner_content(content: str, quote_type: str) -> str:
    """Strip one matching quote from each end; leave asymmetric content alone."""
    if not quote_type or len(content) < 2:
        return content
    if content[0] == quote_type and content[-1] == quote_type:
        return content[1:-1]
    return content


def string_info_from_node(result: ProviderResult) -> StringInfo:
    """Normalize a structural provider result, raising on anything but a string."""
    if isinstance(result, Unavailable):
        raise BreakerError(
            code=ErrorCode.TREESITTER_UNAVAILABLE,
            message=f"Structural string detection is unavailable: {result.reason}",
        )
    if isinstance(result, NotFound):
        raise BreakerError(
            code=ErrorCode.NO_STRING_FOUND,
            message=f"No string found at cursor position. {result.reason}",
        )
    text = result.text
    if len(text) < 2 or text[0] != text[-1] or not is_quote_char(text[0]):
        raise BreakerError(
            code=ErrorCode.NO_STRING_FOUND,
            message="Text under the cursor is not a complete quoted string.",
        )
    quote_type = text[0]
    return StringInfo(
        content=text,
        inner_content=text[1:-1],
        quote_type=quote_type,
        start_pos=result.span.start,
        end_pos=result.span.end,
        source_type=SourceType.STRUCTURAL,
    )


def string_info_from_selection(content: str, span: Span) -> StringInfo:
    """Build StringInfo from raw selected text and its engine-coordinate span."""
    if not content:
        raise BreakerError(
            code=ErrorCode.INVALID_SELECTION,
            message="Invalid selection. Please select valid text content.",
        )
    quote_type = detect_quote_type(content)
    return StringInfo(
        content=content,
        inner_content=extract_inner_content(content, quote_type),
        quote_type=quote_type,
        start_pos=span.start,
        end_pos=span.end,
        source_type=SourceType.SELECTION,
    )


def normalize_selection(
    selection: Selection,
    line_count: int,
    line_lengths: dict[int, int] | None = None,
) -> Span:
    """Order selection endpoints and convert to a 0-based, end-exclusive span.

    Host selections use 1-based inclusive columns. Line-wise selections snap
    to whole lines. ``line_lengths`` maps line numbers to their lengths and must
    cover both endpoint lines.
    """
    first, last = selection.start, selection.end
    if last < first:
        first, last = last, first
    if first.line < 1 or last.line > line_count:
        raise BreakerError(
            code=ErrorCode.INVALID_SELECTION,
            message="Selection lies outside the document.",
        )
    lengths = line_lengths or {}
    first_length = lengths.get(first.line, 0)
    last_length = lengths.get(last.line, 0)

    if selection.mode is SelectionMode.LINEWISE:
        return Span(Position(first.line, 0), Position(last.line, last_length))

    start_column = min(max(first.column - 1, 0), first_length)
    end_column = min(max(last.column, 0), last_length)
    if first.line == last.line and end_column < start_column:
        end_column = start_column
    return Span(Position(first.line, start_column), Position(last.line, end_column))


class StringLocator:
    """Produce StringInfo from the active selection or a structural provider."""

    def __init__(
        self,
        documents: DocumentAccessor,
        selections: SelectionProvider,
        providers: ProviderRegistry,
    ) -> None:
        self._documents = documents
        self._selections = selections
        self._providers = providers

    def locate(self, document: str, position: Position | None = None) -> StringInfo:
        """Prefer the active selection; otherwise detect structurally at position."""
        selection = self._selections.get_active_selection(document)
        if selection is not None:
            return self.from_selection(document, selection)
        return self.from_structural(document, position)

    def from_structural(self, document: str, position: Position | None = None) -> StringInfo:
        """Detect the string enclosing position (default: the host cursor)."""
        target = position if position is not None else self._selections.get_cursor(document)
        path = self._documents.document_path(document)
        try:
            provider = self._providers.select(path)
        except LookupError as error:
            raise BreakerError(
                code=ErrorCode.TREESITTER_UNAVAILABLE,
                message=f"Structural string detection is unavailable: {error}",
            ) from error
        text = self._read_all(document)
        result = provider.find_string_at(path, text, target)
        fallback = self._providers.fallback
        if isinstance(result, Unavailable) and fallback is not None and fallback is not provider:
            result = fallback.find_string_at(path, text, target)
        return string_info_from_node(result)

    def from_selection(self, document: str, selection: Selection) -> StringInfo:
        """Read and normalize a host selection."""
        line_count = self._documents.line_count(document)
        lengths: dict[int, int] = {}
        for line in (selection.start.line, selection.end.line):
            if 1 <= line <= line_count:
                lengths[line] = len(self._documents.get_line(document, line))
        span = normalize_selection(selection, line_count, lengths)
        return string_info_from_selection(self._documents.get_text(document, span), span)

    def _read_all(self, document: str) -> str:
        last_line = self._documents.line_count(document)
        end_column = len(self._documents.get_line(document, last_line))
        whole = Span(Position(1, 0), Position(last_line, end_column))
        return self._documents.get_text(document, whole)
