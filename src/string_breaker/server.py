"""JSON-lines STDIO command server entrypoint."""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

from string_breaker.commands.builtin import register_builtin_commands
from string_breaker.commands.registry import CommandDispatchError, CommandRegistry
from string_breaker.config import CliOverrides, EngineConfig, load_effective_config
from string_breaker.engine import StringBreakerEngine
from string_breaker.host import MemoryWorkspace
from string_breaker.logging import AuditEvent, JsonlAuditLogger, sanitize_arguments, utc_timestamp
from string_breaker.providers import build_provider_registry

_ENGINE_COMMANDS = frozenset(
    {
        "string.break",
        "string.preview",
        "string.sync",
        "string.save",
        "string.cancel",
        "string.escape",
        "string.unescape",
        "string.wrap",
        "string.unwrap",
    }
)


@dataclass(slots=True, frozen=True)
class Request:
    """Normalized incoming request."""

    request_id: str
    command: str
    arguments: dict[str, object]


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for server startup configuration."""
    parser = argparse.ArgumentParser(prog="string-breaker")
    parser.add_argument("--root", required=False, default=".")
    parser.add_argument("--data-dir", required=False, default=None)
    parser.add_argument("--max-string-length", type=int, required=False, default=None)
    parser.add_argument("--preview-max-length", type=int, required=False, default=None)
    parser.add_argument(
        "--treesitter-enabled", choices=("true", "false"), required=False, default=None
    )
    parser.add_argument(
        "--lexical-fallback-enabled", choices=("true", "false"), required=False, default=None
    )
    parser.add_argument("--audit-enabled", choices=("true", "false"), required=False, default=None)
    return parser


class StdioServer:
    """Route JSON-line commands to the engine over an in-memory workspace."""

    def __init__(self, config: EngineConfig, workspace: MemoryWorkspace | None = None) -> None:
        self._config = config
        self._workspace = workspace if workspace is not None else MemoryWorkspace()
        self._audit_logger: JsonlAuditLogger | None = None
        if config.audit.enabled:
            self._audit_logger = JsonlAuditLogger(path=config.data_dir / "audit.jsonl")
        providers = build_provider_registry(config.providers)
        self._engine = StringBreakerEngine(
            self._workspace,
            providers,
            preview=config.preview,
            limits=config.limits,
            audit_logger=self._audit_logger,
        )
        self._registry = CommandRegistry()
        register_builtin_commands(
            self._registry,
            engine=self._engine,
            workspace=self._workspace,
            config=config,
            provider_names=providers.names(),
            read_audit_entries=self._read_audit_entries,
        )
        self._fallback_request_counter = 0

    @property
    def workspace(self) -> MemoryWorkspace:
        """Return the in-memory workspace served by this instance."""
        return self._workspace

    @property
    def engine(self) -> StringBreakerEngine:
        """Return the engine serving string commands."""
        return self._engine

    def command_names(self) -> tuple[str, ...]:
        """Return registered command names in registration order."""
        return self._registry.names()

    def serve(self, in_stream: TextIO, out_stream: TextIO) -> None:
        """Process JSON-line requests from in_stream and write JSON-line responses."""
        for raw_line in in_stream:
            line = raw_line.strip()
            if not line:
                continue
            response = self.handle_json_line(line)
            out_stream.write(f"{json.dumps(response, sort_keys=True)}\n")
            out_stream.flush()

    def handle_json_line(self, raw_line: str) -> dict[str, object]:
        """Handle a single JSON-line request."""
        try:
            payload = json.loads(raw_line)
        except json.JSONDecodeError:
            request_id = self.next_request_id()
            response = self.error_response(
                request_id=request_id,
                code="INVALID_JSON",
                message="Request must be valid JSON.",
            )
            self.log_request("invalid_json", {"raw_line_length": len(raw_line)}, response)
            return response
        return self.handle_payload(payload)

    def handle_payload(self, payload: object) -> dict[str, object]:
        """Validate and dispatch a parsed payload."""
        parsed = self.parse_request(payload)
        if isinstance(parsed, dict):
            self.log_request("invalid_request", {}, parsed)
            return parsed

        request = parsed
        try:
            result = self._registry.dispatch(request.command, request.arguments)
        except CommandDispatchError as error:
            response = self.error_response(
                request_id=request.request_id,
                code=error.code,
                message=error.message,
            )
            self.log_request(request.command, request.arguments, response)
            return response
        except Exception:
            response = self.error_response(
                request_id=request.request_id,
                code="INTERNAL_ERROR",
                message="Unhandled server error while executing command.",
            )
            self.log_request(request.command, request.arguments, response)
            return response

        if result.success:
            response = self.success_response(request.request_id, result.to_dict())
        else:
            response = self.error_response(
                request_id=request.request_id,
                code=result.error_code.value if result.error_code else "UNEXPECTED_ERROR",
                message=result.message,
                result=result.to_dict(),
            )
        # Engine operations audit themselves.
        if request.command not in _ENGINE_COMMANDS:
            self.log_request(request.command, request.arguments, response)
        return response

    def parse_request(self, payload: object) -> Request | dict[str, object]:
        """Validate request payload and return a normalized Request."""
        if not isinstance(payload, dict):
            return self.error_response(
                request_id=self.next_request_id(),
                code="INVALID_REQUEST",
                message="Request must be an object.",
            )

        request_id = self.extract_request_id(payload.get("id"))
        command = payload.get("command")
        arguments = payload.get("arguments", {})

        if not isinstance(command, str) or not command:
            return self.error_response(
                request_id=request_id,
                code="INVALID_REQUEST",
                message="Request command must be a non-empty string.",
            )
        if not isinstance(arguments, dict):
            return self.error_response(
                request_id=request_id,
                code="INVALID_PARAMS",
                message="Request arguments must be an object.",
            )
        return Request(request_id=request_id, command=command, arguments=arguments)

    def extract_request_id(self, request_id: object) -> str:
        """Extract request ID from payload or synthesize a sequential fallback."""
        if isinstance(request_id, str) and request_id:
            return request_id
        if isinstance(request_id, int) and not isinstance(request_id, bool):
            return str(request_id)
        return self.next_request_id()

    def next_request_id(self) -> str:
        """Generate fallback request IDs for invalid or missing IDs."""
        self._fallback_request_counter += 1
        return f"req-{self._fallback_request_counter:06d}"

    @staticmethod
    def success_response(request_id: str, result: dict[str, object]) -> dict[str, object]:
        """Build success envelope."""
        return {"request_id": request_id, "ok": True, "result": result, "error": None}

    @staticmethod
    def error_response(
        request_id: str,
        code: str,
        message: str,
        result: dict[str, object] | None = None,
    ) -> dict[str, object]:
        """Build explicit error envelope."""
        return {
            "request_id": request_id,
            "ok": False,
            "result": result or {},
            "error": {"code": code, "message": message},
        }

    def log_request(
        self,
        command: str,
        arguments: dict[str, object],
        response: dict[str, object],
    ) -> None:
        """Log one sanitized request event."""
        if self._audit_logger is None:
            return
        error_payload = response.get("error")
        error_code: str | None = None
        if isinstance(error_payload, dict):
            code_value = error_payload.get("code")
            if isinstance(code_value, str):
                error_code = code_value
        session_value = arguments.get("session_id")
        event = AuditEvent(
            timestamp=utc_timestamp(),
            operation=command,
            session_id=session_value if isinstance(session_value, str) else None,
            ok=bool(response.get("ok", False)),
            error_code=error_code,
            metadata=sanitize_arguments(arguments),
        )
        self._audit_logger.append(event)

    def _read_audit_entries(self, since: str | None, limit: int) -> list[dict[str, object]]:
        if self._audit_logger is None:
            return []
        return self._audit_logger.read(since=since, limit=limit)


def create_server(
    root: str,
    data_dir: str | None = None,
    cli_overrides: CliOverrides | None = None,
) -> StdioServer:
    """Create a configured STDIO server instance."""
    overrides = cli_overrides or CliOverrides()
    if data_dir is not None and overrides.data_dir is None:
        overrides = CliOverrides(
            data_dir=Path(data_dir).resolve(),
            max_string_length=overrides.max_string_length,
            preview_max_length=overrides.preview_max_length,
            treesitter_enabled=overrides.treesitter_enabled,
            lexical_fallback_enabled=overrides.lexical_fallback_enabled,
            audit_enabled=overrides.audit_enabled,
        )
    config = load_effective_config(root=Path(root).resolve(), overrides=overrides)
    return StdioServer(config=config)


def main(argv: list[str] | None = None) -> int:
    """Entrypoint for the string-breaker server process."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    overrides = CliOverrides(
        data_dir=Path(args.data_dir).resolve() if args.data_dir is not None else None,
        max_string_length=args.max_string_length,
        preview_max_length=args.preview_max_length,
        treesitter_enabled=_parse_flag(args.treesitter_enabled),
        lexical_fallback_enabled=_parse_flag(args.lexical_fallback_enabled),
        audit_enabled=_parse_flag(args.audit_enabled),
    )
    try:
        server = create_server(root=args.root, cli_overrides=overrides)
    except ValueError as error:
        parser.error(str(error))
    server.serve(in_stream=sys.stdin, out_stream=sys.stdout)
    return 0


def _parse_flag(value: str | None) -> bool | None:
    if value is None:
        return None
    return value == "true"


if __name__ == "__main__":
    raise SystemExit(main())
