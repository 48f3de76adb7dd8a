from __future__ import annotations

from string_breaker.models import Position, Span
from string_breaker.providers import (
    LexicalStringProvider,
    NotFound,
    StringNode,
    rules_for_path,
    scan_string_literals,
)


def _find(text: str, path: str, position: Position) -> StringNode | NotFound:
    result = LexicalStringProvider().find_string_at(path, text, position)
    assert isinstance(result, StringNode | NotFound)
    return result


def test_scan_skips_quotes_inside_comments() -> None:
    text = "# it's a comment\nvalue = 'real'\n"

    regions = scan_string_literals(text, rules_for_path("mod.py"))

    assert len(regions) == 1
    assert text[regions[0].start : regions[0].end] == "'real'"
    assert regions[0].terminated


def test_scan_respects_escaped_delimiters() -> None:
    text = 'msg = "say \\"hi\\" now"'

    regions = scan_string_literals(text, rules_for_path("app.js"))

    assert len(regions) == 1
    assert text[regions[0].start : regions[0].end] == '"say \\"hi\\" now"'


def test_single_line_string_stops_at_newline() -> None:
    text = 'bad = "open\nnext = "closed"'

    regions = scan_string_literals(text, rules_for_path("app.js"))

    assert regions[0].terminated is False
    assert regions[1].terminated is True
    assert text[regions[1].start : regions[1].end] == '"closed"'


def test_lua_block_comment_is_not_a_line_comment() -> None:
    text = '--[[ "ignored" ]]\nlocal s = "kept"'

    regions = scan_string_literals(text, rules_for_path("init.lua"))

    assert [text[region.start : region.end] for region in regions] == ['"kept"']


def test_find_string_at_returns_span_and_quote() -> None:
    result = _find('x = call("abc", \'d\')', "app.js", Position(1, 11))

    assert isinstance(result, StringNode)
    assert result.quote_char == '"'
    assert result.text == '"abc"'
    assert result.span == Span(Position(1, 9), Position(1, 14))


def test_find_string_at_on_second_line() -> None:
    result = _find("first()\nsecond('x y')", "app.js", Position(2, 9))

    assert isinstance(result, StringNode)
    assert result.text == "'x y'"
    assert result.span == Span(Position(2, 7), Position(2, 12))


def test_backtick_template_may_span_lines() -> None:
    result = _find("const t = `a\nb`;", "app.ts", Position(2, 0))

    assert isinstance(result, StringNode)
    assert result.text == "`a\nb`"
    assert result.span == Span(Position(1, 10), Position(2, 2))


def test_triple_quoted_string_is_not_supported() -> None:
    result = _find('doc = """text"""', "mod.py", Position(1, 9))

    assert isinstance(result, NotFound)


def test_unterminated_string_is_not_found() -> None:
    result = _find('x = "open', "app.js", Position(1, 6))

    assert isinstance(result, NotFound)


def test_position_outside_text_is_not_found() -> None:
    assert isinstance(_find('x = "a"', "app.js", Position(3, 0)), NotFound)
    assert isinstance(_find('x = "a"', "app.js", Position(1, 40)), NotFound)
