from __future__ import annotations

from string_breaker.logging import sanitize_arguments
from string_breaker.models import Position


def test_text_values_are_reduced_to_presence_and_length() -> None:
    sanitized = sanitize_arguments({"text": "top secret", "document": "doc-0001"})

    assert sanitized == {"document": "doc-0001", "text_length": 10, "text_present": True}


def test_positions_and_scalars_are_kept() -> None:
    sanitized = sanitize_arguments({"position": Position(3, 4), "force": True, "limit": 5})

    assert sanitized == {"force": True, "limit": 5, "position": [3, 4]}


def test_containers_are_summarized() -> None:
    sanitized = sanitize_arguments({"start": [1, 2], "options": {"b": 1, "a": 2}})

    assert sanitized == {
        "options_keys": ["a", "b"],
        "options_type": "dict",
        "start_length": 2,
        "start_type": "list",
    }
