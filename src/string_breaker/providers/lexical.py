"""Deterministic lexical string scanning for any source language."""

from __future__ import annotations

from dataclasses import dataclass

from string_breaker.models import Position, Span
from string_breaker.providers.base import (
    NotFound,
    ProviderResult,
    StringNode,
    offset_to_position,
    position_to_offset,
)


@dataclass(slots=True, frozen=True)
class LexicalRules:
    """Configurable lexical markers used while scanning for string literals."""

    line_comment_prefixes: tuple[str, ...] = ("//", "#")
    block_comment_pairs: tuple[tuple[str, str], ...] = (("/*", "*/"),)
    string_delimiters: tuple[str, ...] = ("'''", '"""', "'", '"', "`")
    multiline_delimiters: tuple[str, ...] = ("'''", '"""', "`")
    escape_char: str = "\\"


@dataclass(slots=True, frozen=True)
class LiteralRegion:
    """String literal range as character offsets, delimiters included."""

    start: int
    end: int
    delimiter: str
    terminated: bool


_C_LIKE_RULES = LexicalRules(
    line_comment_prefixes=("//",),
    block_comment_pairs=(("/*", "*/"),),
    string_delimiters=("'", '"', "`"),
    multiline_delimiters=("`",),
)

LANGUAGE_RULES: tuple[tuple[tuple[str, ...], LexicalRules], ...] = (
    (
        (".py", ".pyi"),
        LexicalRules(
            line_comment_prefixes=("#",),
            block_comment_pairs=(),
            string_delimiters=("'''", '"""', "'", '"'),
            multiline_delimiters=("'''", '"""'),
        ),
    ),
    (
        (".lua",),
        LexicalRules(
            line_comment_prefixes=("--",),
            block_comment_pairs=(("--[[", "]]"),),
            string_delimiters=("'", '"'),
            multiline_delimiters=(),
        ),
    ),
    ((".js", ".jsx", ".mjs", ".cjs", ".ts", ".tsx"), _C_LIKE_RULES),
    (
        (".c", ".h", ".cc", ".cpp", ".hpp", ".cs", ".go", ".java", ".kt", ".rs", ".swift"),
        _C_LIKE_RULES,
    ),
)


def rules_for_path(path: str) -> LexicalRules:
    """Return lexical rules for a path by extension, else generic defaults."""
    lowered = path.lower()
    for extensions, rules in LANGUAGE_RULES:
        if lowered.endswith(extensions):
            return rules
    return LexicalRules()


def scan_string_literals(text: str, rules: LexicalRules | None = None) -> tuple[LiteralRegion, ...]:
    """Return string literal regions in order, skipping comments."""
    active_rules = rules or LexicalRules()
    line_prefixes = _longest_first(active_rules.line_comment_prefixes)
    block_pairs = tuple(
        sorted(
            ((start, end) for start, end in active_rules.block_comment_pairs if start and end),
            key=lambda pair: len(pair[0]),
            reverse=True,
        )
    )
    string_delimiters = _longest_first(active_rules.string_delimiters)

    regions: list[LiteralRegion] = []
    length = len(text)
    index = 0
    opened_at = 0
    state: tuple[str, str] | None = None

    while index < length:
        if state is None:
            # Block markers first so Lua "--[[" is not read as a line comment.
            block_marker = _match_block_start(text, index, block_pairs)
            if block_marker is not None:
                start_marker, end_marker = block_marker
                state = ("block_comment", end_marker)
                index += len(start_marker)
                continue

            line_marker = _match_any(text, index, line_prefixes)
            if line_marker is not None:
                state = ("line_comment", line_marker)
                index += len(line_marker)
                continue

            string_marker = _match_any(text, index, string_delimiters)
            if string_marker is not None:
                state = ("string", string_marker)
                opened_at = index
                index += len(string_marker)
                continue

            index += 1
            continue

        mode, marker = state
        if mode == "line_comment":
            if text[index] == "\n":
                state = None
            index += 1
            continue

        if mode == "block_comment":
            if text.startswith(marker, index):
                state = None
                index += len(marker)
            else:
                index += 1
            continue

        if text.startswith(marker, index) and not _is_escaped(
            text, index, marker, active_rules.escape_char
        ):
            regions.append(
                LiteralRegion(
                    start=opened_at, end=index + len(marker), delimiter=marker, terminated=True
                )
            )
            state = None
            index += len(marker)
            continue
        if (
            text[index] == "\n"
            and marker not in active_rules.multiline_delimiters
            and not _is_escaped(text, index, "\n", active_rules.escape_char)
        ):
            regions.append(
                LiteralRegion(start=opened_at, end=index, delimiter=marker, terminated=False)
            )
            state = None
        index += 1

    if state is not None and state[0] == "string":
        regions.append(
            LiteralRegion(start=opened_at, end=length, delimiter=state[1], terminated=False)
        )
    return tuple(regions)


class LexicalStringProvider:
    """Fallback provider that finds strings with a lexical scan."""

    name = "lexical"

    def supports_path(self, path: str) -> bool:
        """Lexical scanning supports any path."""
        _ = path
        return True

    def find_string_at(self, path: str, text: str, position: Position) -> ProviderResult:
        """Return the single-delimiter string literal enclosing position."""
        offset = position_to_offset(text, position)
        if offset is None:
            return NotFound(reason="Position is outside the document.")
        for region in scan_string_literals(text, rules_for_path(path)):
            if region.start > offset:
                break
            if offset >= region.end:
                continue
            if len(region.delimiter) > 1:
                return NotFound(reason="Triple-quoted strings are not supported.")
            if not region.terminated:
                return NotFound(reason="String at position is not terminated.")
            start = offset_to_position(text, region.start)
            end = offset_to_position(text, region.end)
            return StringNode(
                span=Span(start, end),
                quote_char=region.delimiter,
                text=text[region.start : region.end],
            )
        return NotFound(reason="No string literal at position.")


def _longest_first(markers: tuple[str, ...]) -> tuple[str, ...]:
    return tuple(sorted((marker for marker in markers if marker), key=len, reverse=True))


def _match_any(text: str, index: int, markers: tuple[str, ...]) -> str | None:
    for marker in markers:
        if text.startswith(marker, index):
            return marker
    return None


def _match_block_start(
    text: str,
    index: int,
    pairs: tuple[tuple[str, str], ...],
) -> tuple[str, str] | None:
    for start, end in pairs:
        if text.startswith(start, index):
            return start, end
    return None


def _is_escaped(text: str, index: int, marker: str, escape_char: str) -> bool:
    if len(marker) > 1:
        return False
    backslashes = 0
    cursor = index - 1
    while cursor >= 0 and text[cursor] == escape_char:
        backslashes += 1
        cursor -= 1
    return backslashes % 2 == 1
