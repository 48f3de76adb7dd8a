from __future__ import annotations

from pathlib import Path

import pytest

from string_breaker.server import StdioServer, create_server

SOURCE = 'const msg = "Hello\\nWorld";\nconsole.log(msg);'


def _call(server: StdioServer, command: str, **arguments: object) -> dict[str, object]:
    response = server.handle_payload(
        {"id": f"req-{command}", "command": command, "arguments": arguments}
    )
    assert response["ok"] is True, response
    result = response["result"]
    assert isinstance(result, dict)
    data = result["data"]
    assert isinstance(data, dict)
    return data


def test_break_edit_sync_save_round_trip(tmp_path: Path) -> None:
    server = create_server(root=str(tmp_path))
    document = _call(server, "document.open", text=SOURCE, path="app.js")["document"]

    session_id = _call(server, "string.break", document=document, position=[1, 14])["session_id"]
    assert _call(server, "surface.read", session_id=session_id)["text"] == "Hello\nWorld"

    _call(server, "surface.write", session_id=session_id, text='Hello\n"Brave"\nWorld')
    first = _call(server, "string.sync", session_id=session_id)
    second = _call(server, "string.sync", session_id=session_id)
    saved = _call(server, "string.save", session_id=session_id)

    assert first["changed"] is True
    assert second["changed"] is False
    assert saved["changed"] is False
    text = _call(server, "document.read", document=document)["text"]
    assert text == 'const msg = "Hello\\n\\"Brave\\"\\nWorld";\nconsole.log(msg);'
    assert _call(server, "status")["sessions"] == []

    entries = _call(server, "audit_log", limit=200)["entries"]
    operations = [entry["operation"] for entry in entries]
    assert operations.count("synchronize") == 2
    assert "break_string" in operations
    assert "save" in operations
    assert "Brave" not in (tmp_path / ".string_breaker" / "audit.jsonl").read_text(
        encoding="utf-8"
    )


def test_cancel_leaves_document_untouched(tmp_path: Path) -> None:
    server = create_server(root=str(tmp_path))
    document = _call(server, "document.open", text=SOURCE, path="app.js")["document"]
    session_id = _call(server, "string.break", document=document, position=[1, 14])["session_id"]
    _call(server, "surface.write", session_id=session_id, text="thrown away")

    canceled = _call(server, "string.cancel", session_id=session_id)

    assert canceled["had_binding"] is True
    assert _call(server, "document.read", document=document)["text"] == SOURCE


def test_selection_wrap_then_unwrap(tmp_path: Path) -> None:
    server = create_server(root=str(tmp_path))
    document = _call(server, "document.open", text="path = C:\\temp", path="cfg.js")["document"]
    _call(server, "selection.set", document=document, start=[1, 8], end=[1, 14])

    _call(server, "string.wrap", document=document, quote="double")
    wrapped = _call(server, "document.read", document=document)["text"]
    _call(server, "selection.clear", document=document)
    _call(server, "string.unwrap", document=document, position=[1, 9])
    unwrapped = _call(server, "document.read", document=document)["text"]

    assert wrapped == 'path = "C:\\\\temp"'
    assert unwrapped == "path = C:\\temp"


def test_python_string_through_tree_sitter(tmp_path: Path) -> None:
    pytest.importorskip("tree_sitter_python")
    server = create_server(root=str(tmp_path))
    document = _call(
        server, "document.open", text='greeting = "Hello\\nWorld"\n', path="app.py"
    )["document"]

    opened = _call(server, "string.break", document=document, position=[1, 14])
    session_id = opened["session_id"]

    assert opened["source_type"] == "structural"
    assert opened["quote_type"] == '"'
    assert _call(server, "surface.read", session_id=session_id)["text"].split("\n") == [
        "Hello",
        "World",
    ]
    _call(server, "surface.write", session_id=session_id, text="Hello\tWorld")
    _call(server, "string.save", session_id=session_id)
    assert _call(server, "document.read", document=document)["text"] == (
        'greeting = "Hello\\tWorld"\n'
    )
