"""Deterministic command registration primitives."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from string_breaker.errors import OperationResult

CommandHandler = Callable[[dict[str, object]], OperationResult]


@dataclass(slots=True, frozen=True)
class CommandDispatchError(Exception):
    """Request-level failure raised before an operation runs."""

    code: str
    message: str


@dataclass(slots=True)
class CommandRegistry:
    """In-memory command registry preserving insertion order."""

    _handlers: dict[str, CommandHandler] = field(default_factory=dict)

    def register(self, name: str, handler: CommandHandler) -> None:
        """Register a named handler."""
        self._handlers[name] = handler

    def get(self, name: str) -> CommandHandler | None:
        """Return a handler by name."""
        return self._handlers.get(name)

    def names(self) -> tuple[str, ...]:
        """Return registered command names in registration order."""
        return tuple(self._handlers.keys())

    def dispatch(self, name: str, arguments: dict[str, object]) -> OperationResult:
        """Dispatch to a registered command by name."""
        handler = self.get(name)
        if handler is None:
            raise CommandDispatchError(code="UNKNOWN_COMMAND", message=f"Unknown command: {name}")
        return handler(arguments)
