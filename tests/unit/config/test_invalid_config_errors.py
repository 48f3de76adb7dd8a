from __future__ import annotations

from pathlib import Path

import pytest

from string_breaker.config import CliOverrides, load_effective_config
from string_breaker.server import create_server


def _write(tmp_path: Path, *lines: str) -> None:
    (tmp_path / "string_breaker.toml").write_text("\n".join(lines), encoding="utf-8")


def test_invalid_limit_type_raises_value_error(tmp_path: Path) -> None:
    _write(tmp_path, "[limits]", 'max_string_length = "large"')

    with pytest.raises(ValueError, match="limits.max_string_length"):
        create_server(root=str(tmp_path))


def test_invalid_section_type_raises_value_error(tmp_path: Path) -> None:
    _write(tmp_path, 'preview = "not-a-table"')

    with pytest.raises(ValueError, match="section 'preview'"):
        create_server(root=str(tmp_path))


def test_boolean_is_not_a_positive_integer(tmp_path: Path) -> None:
    _write(tmp_path, "[preview]", "width = true")

    with pytest.raises(ValueError, match="preview.width"):
        load_effective_config(tmp_path)


def test_integer_is_not_a_boolean(tmp_path: Path) -> None:
    _write(tmp_path, "[providers]", "lexical_fallback_enabled = 1")

    with pytest.raises(ValueError, match="providers.lexical_fallback_enabled"):
        load_effective_config(tmp_path)


def test_values_above_cap_are_rejected(tmp_path: Path) -> None:
    _write(tmp_path, "[preview]", "max_length = 100001")

    with pytest.raises(ValueError, match="<= 100000"):
        load_effective_config(tmp_path)


def test_invalid_override_names_its_source(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="overrides.preview_max_length"):
        load_effective_config(tmp_path, CliOverrides(preview_max_length=0))


def test_unknown_sections_are_ignored(tmp_path: Path) -> None:
    _write(tmp_path, "[keybindings]", 'break_string = "<space>fes"')

    assert load_effective_config(tmp_path).preview.max_length == 1000
