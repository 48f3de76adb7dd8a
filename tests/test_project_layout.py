from __future__ import annotations

from pathlib import Path


def test_required_package_paths_exist() -> None:
    root = Path(__file__).resolve().parents[1]
    required = [
        "src/string_breaker/server.py",
        "src/string_breaker/engine.py",
        "src/string_breaker/codec.py",
        "src/string_breaker/commands/__init__.py",
        "src/string_breaker/providers/__init__.py",
        "src/string_breaker/host/__init__.py",
        "src/string_breaker/logging/__init__.py",
    ]
    for rel in required:
        assert (root / rel).exists(), rel
