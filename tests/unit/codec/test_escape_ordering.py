from __future__ import annotations

from string_breaker.codec import escape, is_quote_char, unescape


def test_double_backslash_before_n_is_not_a_newline() -> None:
    assert unescape("\\\\n") == "\\n"


def test_escape_doubles_a_single_backslash() -> None:
    assert escape("\\", '"') == "\\\\"


def test_escape_handles_control_characters() -> None:
    assert escape("a\nb\tc\rd") == "a\\nb\\tc\\rd"


def test_unescape_reads_supported_sequences() -> None:
    assert unescape('\\"q\\" \\\'s\\\' \\`b\\`') == "\"q\" 's' `b`"
    assert unescape("x\\ty\\r\\n") == "x\ty\r\n"


def test_unknown_sequences_pass_through() -> None:
    assert unescape("\\q\\d") == "\\q\\d"


def test_unescape_of_plain_text_is_identity() -> None:
    assert unescape("") == ""
    assert unescape("nothing to do") == "nothing to do"


def test_escape_only_escapes_the_delimiter_quote() -> None:
    assert escape('He said "hi"', "'") == 'He said "hi"'
    assert escape("it's", "'") == "it\\'s"
    assert escape("it's", '"') == "it's"
    assert escape("a`b", "`") == "a\\`b"


def test_empty_quote_escapes_no_quotes() -> None:
    assert escape("say \"x\" and 'y'", "") == "say \"x\" and 'y'"


def test_nul_is_escaped_in_both_directions() -> None:
    assert escape("a\0b") == "a\\0b"
    assert unescape("a\\0b") == "a\0b"


def test_placeholder_never_collides_with_input() -> None:
    text = "\ue000 and \\\\"

    assert unescape(text) == "\ue000 and \\"


def test_is_quote_char() -> None:
    assert is_quote_char('"')
    assert is_quote_char("`")
    assert not is_quote_char("")
    assert not is_quote_char('""')
