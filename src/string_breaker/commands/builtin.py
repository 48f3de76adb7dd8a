"""Built-in command set wired to the engine and the in-memory host."""

from __future__ import annotations

from collections.abc import Callable

from string_breaker.commands.registry import CommandDispatchError, CommandHandler, CommandRegistry
from string_breaker.config import EngineConfig
from string_breaker.engine import StringBreakerEngine
from string_breaker.errors import OperationResult
from string_breaker.host import MemoryWorkspace
from string_breaker.models import Position, Selection, SelectionMode

MAX_AUDIT_ENTRIES = 200


def register_builtin_commands(
    registry: CommandRegistry,
    engine: StringBreakerEngine,
    workspace: MemoryWorkspace,
    config: EngineConfig,
    provider_names: tuple[str, ...],
    read_audit_entries: Callable[[str | None, int], list[dict[str, object]]],
) -> None:
    """Register document, selection, surface, string and status commands."""
    registry.register("document.open", _document_open_handler(workspace))
    registry.register("document.read", _document_read_handler(workspace))
    registry.register("document.close", _document_close_handler(workspace))
    registry.register("selection.set", _selection_set_handler(workspace))
    registry.register("selection.clear", _selection_clear_handler(workspace))
    registry.register("surface.read", _surface_read_handler(workspace))
    registry.register("surface.write", _surface_write_handler(workspace))

    registry.register("string.break", _break_handler(engine))
    registry.register("string.preview", _locate_handler("string.preview", engine.preview))
    registry.register("string.sync", _session_handler("string.sync", engine.synchronize))
    registry.register("string.save", _session_handler("string.save", engine.save))
    registry.register("string.cancel", _session_handler("string.cancel", engine.cancel))
    registry.register("string.escape", _escape_handler(engine))
    registry.register(
        "string.unescape", _locate_handler("string.unescape", engine.unescape_selection)
    )
    registry.register("string.wrap", _wrap_handler(engine))
    registry.register("string.unwrap", _locate_handler("string.unwrap", engine.unwrap_selection))

    registry.register("status", _status_handler(engine, workspace, config, provider_names))
    registry.register("audit_log", _audit_log_handler(read_audit_entries))


def _document_open_handler(workspace: MemoryWorkspace) -> CommandHandler:
    def handler(arguments: dict[str, object]) -> OperationResult:
        text = arguments.get("text")
        if not isinstance(text, str):
            raise CommandDispatchError(
                code="INVALID_PARAMS", message="document.open text must be a string."
            )
        path = _optional_str(arguments, "path", "document.open") or ""
        document_id = _optional_str(arguments, "document", "document.open")
        writable = _optional_bool(arguments, "writable", "document.open", default=True)
        try:
            opened = workspace.open_document(
                text, document_id=document_id, path=path, writable=writable
            )
        except ValueError as error:
            raise CommandDispatchError(code="INVALID_PARAMS", message=str(error)) from error
        return OperationResult.ok(
            "Document opened.", document=opened, line_count=workspace.line_count(opened)
        )

    return handler


def _document_read_handler(workspace: MemoryWorkspace) -> CommandHandler:
    def handler(arguments: dict[str, object]) -> OperationResult:
        document = _require_document(workspace, arguments, "document.read")
        return OperationResult.ok(
            "Document read.",
            document=document,
            path=workspace.document_path(document),
            text=workspace.document_text(document),
            line_count=workspace.line_count(document),
        )

    return handler


def _document_close_handler(workspace: MemoryWorkspace) -> CommandHandler:
    def handler(arguments: dict[str, object]) -> OperationResult:
        document = _require_document(workspace, arguments, "document.close")
        workspace.close_document(document)
        return OperationResult.ok("Document closed.", document=document)

    return handler


def _selection_set_handler(workspace: MemoryWorkspace) -> CommandHandler:
    def handler(arguments: dict[str, object]) -> OperationResult:
        document = _require_document(workspace, arguments, "selection.set")
        start = _parse_position(arguments.get("start"), "selection.set start")
        end = _parse_position(arguments.get("end"), "selection.set end")
        mode_value = arguments.get("mode", SelectionMode.CHARWISE.value)
        try:
            mode = SelectionMode(mode_value)
        except ValueError as error:
            raise CommandDispatchError(
                code="INVALID_PARAMS",
                message="selection.set mode must be charwise, linewise or blockwise.",
            ) from error
        workspace.set_selection(document, Selection(start=start, end=end, mode=mode))
        return OperationResult.ok("Selection set.", document=document, mode=mode.value)

    return handler


def _selection_clear_handler(workspace: MemoryWorkspace) -> CommandHandler:
    def handler(arguments: dict[str, object]) -> OperationResult:
        document = _require_document(workspace, arguments, "selection.clear")
        workspace.clear_selection(document)
        return OperationResult.ok("Selection cleared.", document=document)

    return handler


def _surface_read_handler(workspace: MemoryWorkspace) -> CommandHandler:
    def handler(arguments: dict[str, object]) -> OperationResult:
        session_id = _require_surface(workspace, arguments, "surface.read")
        return OperationResult.ok(
            "Surface read.", session_id=session_id, text=workspace.surface_text(session_id)
        )

    return handler


def _surface_write_handler(workspace: MemoryWorkspace) -> CommandHandler:
    def handler(arguments: dict[str, object]) -> OperationResult:
        session_id = _require_surface(workspace, arguments, "surface.write")
        text = arguments.get("text")
        if not isinstance(text, str):
            raise CommandDispatchError(
                code="INVALID_PARAMS", message="surface.write text must be a string."
            )
        workspace.write_surface(session_id, text)
        return OperationResult.ok("Surface written.", session_id=session_id)

    return handler


def _break_handler(engine: StringBreakerEngine) -> CommandHandler:
    def handler(arguments: dict[str, object]) -> OperationResult:
        document = _require_str(arguments, "document", "string.break")
        position = _optional_position(arguments, "string.break")
        force = _optional_bool(arguments, "force", "string.break", default=False)
        return engine.break_string(document, position, force=force)

    return handler


def _locate_handler(
    name: str,
    operation: Callable[[str, Position | None], OperationResult],
) -> CommandHandler:
    def handler(arguments: dict[str, object]) -> OperationResult:
        document = _require_str(arguments, "document", name)
        return operation(document, _optional_position(arguments, name))

    return handler


def _session_handler(
    name: str,
    operation: Callable[[str], OperationResult],
) -> CommandHandler:
    def handler(arguments: dict[str, object]) -> OperationResult:
        return operation(_require_str(arguments, "session_id", name))

    return handler


def _escape_handler(engine: StringBreakerEngine) -> CommandHandler:
    def handler(arguments: dict[str, object]) -> OperationResult:
        document = _require_str(arguments, "document", "string.escape")
        position = _optional_position(arguments, "string.escape")
        quote = _optional_str(arguments, "quote", "string.escape")
        return engine.escape_selection(document, position, quote)

    return handler


def _wrap_handler(engine: StringBreakerEngine) -> CommandHandler:
    def handler(arguments: dict[str, object]) -> OperationResult:
        document = _require_str(arguments, "document", "string.wrap")
        quote = _optional_str(arguments, "quote", "string.wrap") or "double"
        return engine.wrap_selection(document, quote)

    return handler


def _status_handler(
    engine: StringBreakerEngine,
    workspace: MemoryWorkspace,
    config: EngineConfig,
    provider_names: tuple[str, ...],
) -> CommandHandler:
    def handler(_: dict[str, object]) -> OperationResult:
        return OperationResult.ok(
            "Status.",
            providers=list(provider_names),
            documents=list(workspace.document_ids()),
            sessions=engine.sessions(),
            effective_config=config.to_public_dict(),
        )

    return handler


def _audit_log_handler(
    read_audit_entries: Callable[[str | None, int], list[dict[str, object]]],
) -> CommandHandler:
    def handler(arguments: dict[str, object]) -> OperationResult:
        since_value = arguments.get("since")
        limit_value = arguments.get("limit", 50)

        since: str | None = since_value if isinstance(since_value, str) else None
        limit = limit_value if isinstance(limit_value, int) else 50
        if limit < 1:
            limit = 1
        if limit > MAX_AUDIT_ENTRIES:
            limit = MAX_AUDIT_ENTRIES

        return OperationResult.ok("Audit entries.", entries=read_audit_entries(since, limit))

    return handler


def _require_str(arguments: dict[str, object], key: str, name: str) -> str:
    value = arguments.get(key)
    if not isinstance(value, str) or not value:
        raise CommandDispatchError(
            code="INVALID_PARAMS", message=f"{name} {key} must be a non-empty string."
        )
    return value


def _optional_str(arguments: dict[str, object], key: str, name: str) -> str | None:
    value = arguments.get(key)
    if value is None:
        return None
    if not isinstance(value, str) or not value:
        raise CommandDispatchError(
            code="INVALID_PARAMS", message=f"{name} {key} must be a non-empty string."
        )
    return value


def _optional_bool(arguments: dict[str, object], key: str, name: str, *, default: bool) -> bool:
    value = arguments.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise CommandDispatchError(
            code="INVALID_PARAMS", message=f"{name} {key} must be a boolean."
        )
    return value


def _optional_position(arguments: dict[str, object], name: str) -> Position | None:
    value = arguments.get("position")
    if value is None:
        return None
    return _parse_position(value, f"{name} position")


def _parse_position(value: object, label: str) -> Position:
    if (
        isinstance(value, list)
        and len(value) == 2
        and all(isinstance(item, int) and not isinstance(item, bool) for item in value)
    ):
        return Position(value[0], value[1])
    raise CommandDispatchError(
        code="INVALID_PARAMS", message=f"{label} must be a [line, column] pair of integers."
    )


def _require_document(workspace: MemoryWorkspace, arguments: dict[str, object], name: str) -> str:
    document = _require_str(arguments, "document", name)
    if not workspace.has_document(document):
        raise CommandDispatchError(code="UNKNOWN_DOCUMENT", message=f"Unknown document: {document}")
    return document


def _require_surface(workspace: MemoryWorkspace, arguments: dict[str, object], name: str) -> str:
    session_id = _require_str(arguments, "session_id", name)
    if session_id not in workspace.surface_ids():
        raise CommandDispatchError(code="UNKNOWN_SURFACE", message=f"Unknown surface: {session_id}")
    return session_id
