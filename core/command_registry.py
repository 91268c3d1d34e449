"""Map parsed command kinds to the handlers that answer them.

The orchestrator registers one handler per command kind at construction time
and dispatches every parsed command through this registry, so an unknown kind
fails loudly instead of silently producing no reply.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Protocol

from core.models import CreatorContext
from core.parsers.types import ParsedCommand


@dataclass
class HandlerResult:
    """Reply text plus the resolution status reached while producing it."""

    text: str
    status: str = "resolved"
    details: Dict[str, Any] = field(default_factory=dict)


class CommandHandler(Protocol):
    def __call__(self, command: ParsedCommand, creator: CreatorContext) -> HandlerResult:
        ...


class CommandRegistry:
    """Registry that maps command kinds to handler callables."""

    def __init__(self) -> None:
        self._handlers: Dict[str, CommandHandler] = {}

    # WHAT: register a handler under a unique command kind.
    # HOW: guard against duplicates and store the callable in `_handlers`.
    def register_handler(self, kind: str, fn: CommandHandler) -> None:
        if kind in self._handlers:
            raise ValueError(f"Handler for '{kind}' is already registered")
        self._handlers[kind] = fn

    # WHAT: execute the handler registered for the command's kind.
    def run_command(self, command: ParsedCommand, creator: CreatorContext) -> HandlerResult:
        try:
            handler = self._handlers[command.kind]
        except KeyError as exc:
            raise KeyError(f"Handler for '{command.kind}' is not registered") from exc
        return handler(command, creator)

    def available_handlers(self) -> Dict[str, CommandHandler]:
        return dict(self._handlers)


__all__ = ["CommandHandler", "CommandRegistry", "HandlerResult"]
