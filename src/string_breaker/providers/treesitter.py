"""Tree-sitter structural provider for Python sources."""

from __future__ import annotations

from functools import cache
from typing import TYPE_CHECKING

from string_breaker.models import Position, Span
from string_breaker.providers.base import NotFound, ProviderResult, StringNode, Unavailable

if TYPE_CHECKING:
    from tree_sitter import Node, Parser

_STRING_PREFIX_CHARS = "rRbBuUfFtT"


@cache
def _python_parser() -> Parser:
    import tree_sitter_python
    from tree_sitter import Language, Parser

    return Parser(Language(tree_sitter_python.language()))


class TreeSitterStringProvider:
    """Locate Python string literals from the tree-sitter syntax tree."""

    name = "tree-sitter"

    def __init__(self, extensions: tuple[str, ...] = (".py", ".pyi")) -> None:
        self._extensions = extensions

    def supports_path(self, path: str) -> bool:
        """Return True when path is a Python source file."""
        return path.lower().endswith(self._extensions)

    def find_string_at(self, path: str, text: str, position: Position) -> ProviderResult:
        """Return the string node enclosing position, without its prefix letters."""
        _ = path
        try:
            parser = _python_parser()
        except (ImportError, ValueError) as error:
            return Unavailable(reason=f"tree-sitter Python grammar is unavailable: {error}")

        lines = text.split("\n")
        if position.line < 1 or position.line > len(lines):
            return NotFound(reason="Position is outside the document.")
        row = position.line - 1
        if position.column < 0 or position.column > len(lines[row]):
            return NotFound(reason="Position is outside the document.")

        source = text.encode("utf-8")
        point = (row, len(lines[row][: position.column].encode("utf-8")))
        tree = parser.parse(source)
        node = _enclosing_string(tree.root_node.descendant_for_point_range(point, point))
        if node is None or not node.children:
            return NotFound(reason="No string literal at position.")

        opening = _node_text(node.children[0], source)
        prefix_length = len(opening) - len(opening.lstrip(_STRING_PREFIX_CHARS))
        delimiter = opening[prefix_length:]
        if len(delimiter) != 1:
            return NotFound(reason="Triple-quoted strings are not supported.")

        closing = node.children[-1]
        literal = source[node.start_byte + prefix_length : node.end_byte].decode("utf-8")
        if closing.is_missing or len(literal) < 2 or not literal.endswith(delimiter):
            return NotFound(reason="String at position is not terminated.")

        start_row, start_col = node.start_point[0], node.start_point[1]
        end_row, end_col = node.end_point[0], node.end_point[1]
        return StringNode(
            span=Span(
                _position_from_bytes(lines, start_row, start_col + prefix_length),
                _position_from_bytes(lines, end_row, end_col),
            ),
            quote_char=delimiter,
            text=literal,
        )


def _enclosing_string(node: Node | None) -> Node | None:
    while node is not None and node.type != "string":
        node = node.parent
    return node


def _node_text(node: Node, source: bytes) -> str:
    return source[node.start_byte : node.end_byte].decode("utf-8")


def _position_from_bytes(lines: list[str], row: int, byte_column: int) -> Position:
    encoded = lines[row].encode("utf-8")
    return Position(row + 1, len(encoded[:byte_column].decode("utf-8", errors="ignore")))
