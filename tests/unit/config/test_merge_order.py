from __future__ import annotations

from pathlib import Path

from string_breaker.config import CliOverrides, load_effective_config
from string_breaker.server import create_server


def test_defaults_without_config_file(tmp_path: Path) -> None:
    config = load_effective_config(tmp_path)

    assert config.root == tmp_path.resolve()
    assert config.data_dir == tmp_path.resolve() / ".string_breaker"
    assert config.preview.max_length == 1000
    assert config.preview.use_float is True
    assert config.limits.max_string_length == 10_000
    assert config.providers.treesitter_enabled is True
    assert config.audit.enabled is True


def test_merge_order_defaults_then_file_then_cli(tmp_path: Path) -> None:
    (tmp_path / "string_breaker.toml").write_text(
        "\n".join(
            [
                "[preview]",
                "max_length = 500",
                "use_float = false",
                "",
                "[limits]",
                "max_string_length = 2000",
                "",
                "[providers]",
                "treesitter_enabled = false",
            ]
        ),
        encoding="utf-8",
    )
    overrides = CliOverrides(max_string_length=3000, treesitter_enabled=True)
    server = create_server(root=str(tmp_path), cli_overrides=overrides)

    response = server.handle_payload({"id": "req-merge", "command": "status", "arguments": {}})
    effective = response["result"]["data"]["effective_config"]

    assert effective["preview"]["max_length"] == 500
    assert effective["preview"]["use_float"] is False
    assert effective["limits"]["max_string_length"] == 3000
    assert effective["providers"]["treesitter_enabled"] is True
    assert response["result"]["data"]["providers"] == ["tree-sitter", "lexical"]


def test_audit_data_dir_is_relative_to_root(tmp_path: Path) -> None:
    (tmp_path / "string_breaker.toml").write_text(
        '[audit]\ndata_dir = "var/breaker"\n', encoding="utf-8"
    )

    config = load_effective_config(tmp_path)

    assert config.data_dir == (tmp_path / "var" / "breaker").resolve()


def test_data_dir_override_has_highest_precedence(tmp_path: Path) -> None:
    custom_data_dir = tmp_path / ".custom_data"
    server = create_server(
        root=str(tmp_path),
        cli_overrides=CliOverrides(data_dir=custom_data_dir),
    )

    response = server.handle_payload({"id": "req-data-dir", "command": "status", "arguments": {}})
    effective = response["result"]["data"]["effective_config"]
    assert effective["data_dir"] == str(custom_data_dir.resolve())
    assert (custom_data_dir / "audit.jsonl").exists()
