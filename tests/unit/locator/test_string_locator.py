from __future__ import annotations

import pytest

from string_breaker.codec import unescape
from string_breaker.errors import BreakerError, ErrorCode
from string_breaker.host import MemoryWorkspace
from string_breaker.locator import StringLocator
from string_breaker.models import Position, Selection, SelectionMode, SourceType, Span
from string_breaker.providers import LexicalStringProvider, ProviderRegistry, Unavailable


class _UnavailableProvider:
    name = "unavailable"

    def supports_path(self, path: str) -> bool:
        return True

    def find_string_at(self, path: str, text: str, position: Position) -> Unavailable:
        return Unavailable(reason="grammar missing")


def _lexical_registry() -> ProviderRegistry:
    registry = ProviderRegistry()
    registry.register(LexicalStringProvider(), fallback=True)
    return registry


def test_structural_locate_at_cursor() -> None:
    workspace = MemoryWorkspace()
    document = workspace.open_document('const s = "Hello\\nWorld";', path="app.js")
    workspace.set_cursor(document, Position(1, 12))
    locator = StringLocator(workspace, workspace, _lexical_registry())

    info = locator.locate(document)

    assert info.quote_type == '"'
    assert info.inner_content == "Hello\\nWorld"
    assert info.span == Span(Position(1, 10), Position(1, 24))
    assert unescape(info.inner_content).split("\n") == ["Hello", "World"]


def test_active_selection_wins_over_cursor() -> None:
    workspace = MemoryWorkspace()
    document = workspace.open_document('say("abc") and more', path="app.js")
    workspace.set_selection(document, Selection(start=Position(1, 12), end=Position(1, 19)))
    locator = StringLocator(workspace, workspace, _lexical_registry())

    info = locator.locate(document, Position(1, 6))

    assert info.source_type is SourceType.SELECTION
    assert info.content == "and more"
    assert info.quote_type == ""


def test_backward_selection_yields_same_info() -> None:
    workspace = MemoryWorkspace()
    document = workspace.open_document('say("abc")', path="app.js")
    locator = StringLocator(workspace, workspace, _lexical_registry())

    forward = locator.from_selection(document, Selection(Position(1, 5), Position(1, 9)))
    backward = locator.from_selection(document, Selection(Position(1, 9), Position(1, 5)))

    assert forward == backward
    assert forward.content == '"abc"'
    assert forward.inner_content == "abc"


def test_multiline_selection_joins_lines() -> None:
    workspace = MemoryWorkspace()
    document = workspace.open_document("one\ntwo\nthree")
    locator = StringLocator(workspace, workspace, _lexical_registry())

    info = locator.from_selection(
        document, Selection(Position(1, 2), Position(3, 1), SelectionMode.LINEWISE)
    )

    assert info.content == "one\ntwo\nthree"
    assert info.span == Span(Position(1, 0), Position(3, 5))


def test_unavailable_provider_falls_back_to_lexical() -> None:
    workspace = MemoryWorkspace()
    document = workspace.open_document('x = "hi"', path="mod.py")
    registry = _lexical_registry()
    registry.register(_UnavailableProvider())
    locator = StringLocator(workspace, workspace, registry)

    info = locator.from_structural(document, Position(1, 5))

    assert info.content == '"hi"'


def test_unavailable_provider_without_fallback_is_reported() -> None:
    workspace = MemoryWorkspace()
    document = workspace.open_document('x = "hi"', path="mod.py")
    registry = ProviderRegistry()
    registry.register(_UnavailableProvider())
    locator = StringLocator(workspace, workspace, registry)

    with pytest.raises(BreakerError) as raised:
        locator.from_structural(document, Position(1, 5))

    assert raised.value.code is ErrorCode.TREESITTER_UNAVAILABLE


def test_no_provider_for_path_is_unavailable() -> None:
    workspace = MemoryWorkspace()
    document = workspace.open_document('x = "hi"', path="mod.py")
    locator = StringLocator(workspace, workspace, ProviderRegistry())

    with pytest.raises(BreakerError) as raised:
        locator.from_structural(document, Position(1, 5))

    assert raised.value.code is ErrorCode.TREESITTER_UNAVAILABLE


def test_cursor_outside_string_is_not_found() -> None:
    workspace = MemoryWorkspace()
    document = workspace.open_document('x = "hi"', path="app.js")
    locator = StringLocator(workspace, workspace, _lexical_registry())

    with pytest.raises(BreakerError) as raised:
        locator.from_structural(document, Position(1, 1))

    assert raised.value.code is ErrorCode.NO_STRING_FOUND
