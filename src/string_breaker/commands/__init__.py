"""Named command handlers exposed by the STDIO server."""

from .registry import CommandDispatchError, CommandHandler, CommandRegistry

__all__ = ["CommandDispatchError", "CommandHandler", "CommandRegistry"]
