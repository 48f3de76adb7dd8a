from __future__ import annotations

import json
from pathlib import Path

from string_breaker.errors import (
    DEFAULT_SUGGESTIONS,
    BreakerError,
    ErrorCode,
    ErrorKind,
    OperationResult,
)
from string_breaker.server import create_server


def test_malformed_json_returns_invalid_json_error(tmp_path: Path) -> None:
    server = create_server(root=str(tmp_path))

    response = server.handle_json_line("{not-json")

    assert response["ok"] is False
    assert response["error"] == {
        "code": "INVALID_JSON",
        "message": "Request must be valid JSON.",
    }
    assert str(response["request_id"]).startswith("req-")


def test_unknown_command_returns_explicit_error(tmp_path: Path) -> None:
    server = create_server(root=str(tmp_path))

    response = server.handle_payload(
        {"id": "abc-123", "command": "string.unknown", "arguments": {"k": "v"}}
    )

    assert response["ok"] is False
    assert response["request_id"] == "abc-123"
    assert response["error"] == {
        "code": "UNKNOWN_COMMAND",
        "message": "Unknown command: string.unknown",
    }


def test_non_object_arguments_return_invalid_params(tmp_path: Path) -> None:
    server = create_server(root=str(tmp_path))
    payload = {"id": 7, "command": "status", "arguments": []}

    response = server.handle_payload(json.loads(json.dumps(payload)))

    assert response["ok"] is False
    assert response["request_id"] == "7"
    assert response["error"] == {
        "code": "INVALID_PARAMS",
        "message": "Request arguments must be an object.",
    }


def test_engine_failure_carries_result_payload(tmp_path: Path) -> None:
    server = create_server(root=str(tmp_path))
    server.workspace.open_document("value = 1", document_id="doc-a", path="a.js")

    response = server.handle_payload(
        {"id": "r1", "command": "string.break", "arguments": {"document": "doc-a"}}
    )

    assert response["ok"] is False
    assert response["error"]["code"] == "NO_STRING_FOUND"
    assert response["result"]["success"] is False
    assert response["result"]["error_kind"] == "NotFound"
    assert response["result"]["suggestions"] == list(DEFAULT_SUGGESTIONS[ErrorCode.NO_STRING_FOUND])


def test_every_code_maps_to_one_kind() -> None:
    kinds = {code: code.kind for code in ErrorCode}

    assert kinds[ErrorCode.TREESITTER_UNAVAILABLE] is ErrorKind.PROVIDER_UNAVAILABLE
    assert kinds[ErrorCode.POSITION_INVALIDATED] is ErrorKind.STALE_BINDING
    assert kinds[ErrorCode.CANCEL_FAILED] is ErrorKind.UNEXPECTED
    assert set(kinds.values()) == set(ErrorKind)


def test_operation_result_dict_shapes() -> None:
    ok = OperationResult.ok("done", changed=True)
    failed = OperationResult.from_error(
        BreakerError(code=ErrorCode.EMPTY_CONTENT, message="empty", suggestions=("retry",))
    )
    unexpected = OperationResult.unexpected("saving string", RuntimeError("boom"))

    assert ok.to_dict() == {"success": True, "message": "done", "data": {"changed": True}}
    assert failed.to_dict() == {
        "success": False,
        "message": "empty",
        "data": {},
        "error_code": "EMPTY_CONTENT",
        "error_kind": "InvalidInput",
        "suggestions": ["retry"],
    }
    assert unexpected.message == "Unexpected error occurred while saving string: boom"
    assert unexpected.error_code is ErrorCode.UNEXPECTED_ERROR
    assert str(BreakerError(code=ErrorCode.EMPTY_CONTENT, message="empty")) == (
        "EMPTY_CONTENT: empty"
    )
