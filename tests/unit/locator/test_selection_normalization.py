from __future__ import annotations

import pytest

from string_breaker.errors import BreakerError, ErrorCode
from string_breaker.locator import normalize_selection
from string_breaker.models import Position, Selection, SelectionMode, Span


def test_charwise_selection_converts_to_half_open_columns() -> None:
    selection = Selection(start=Position(1, 1), end=Position(1, 5))

    assert normalize_selection(selection, 1, {1: 10}) == Span(Position(1, 0), Position(1, 5))


def test_backward_drag_matches_forward_drag() -> None:
    forward = Selection(start=Position(2, 3), end=Position(4, 6))
    backward = Selection(start=Position(4, 6), end=Position(2, 3))
    lengths = {2: 12, 4: 12}

    assert normalize_selection(backward, 5, lengths) == normalize_selection(forward, 5, lengths)


def test_linewise_selection_snaps_to_whole_lines() -> None:
    lengths = {3: 10, 5: 14}
    for start_column, end_column in ((7, 2), (1, 14), (4, 9)):
        selection = Selection(
            start=Position(3, start_column),
            end=Position(5, end_column),
            mode=SelectionMode.LINEWISE,
        )

        span = normalize_selection(selection, 6, lengths)

        assert span == Span(Position(3, 0), Position(5, 14))


def test_end_column_past_line_is_clamped() -> None:
    selection = Selection(start=Position(1, 1), end=Position(1, 2147483647))

    assert normalize_selection(selection, 1, {1: 4}) == Span(Position(1, 0), Position(1, 4))


def test_selection_outside_document_is_rejected() -> None:
    selection = Selection(start=Position(1, 1), end=Position(9, 1))

    with pytest.raises(BreakerError) as raised:
        normalize_selection(selection, 3, {1: 5})

    assert raised.value.code is ErrorCode.INVALID_SELECTION
