# src/diagtask/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Callable

from ..core.state import AppState
from ..tasks.task_models import Busy, InvalidArgument, InvalidKey, StatusKeyword

CommandHandler = Callable[[AppState, list[str]], str]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console driver (/help, /store, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        return handler(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_store(state: AppState, args: list[str]) -> str:
    """/store <task> [seconds]"""
    if not args:
        return "Usage: /store <task> [seconds]"
    task = args[0]
    argument = args[1] if len(args) > 1 else None

    try:
        state.service.store(task, state.session_id, argument)
    except InvalidKey:
        return f"Unknown task: {task}. Use /tasks to list them."
    except InvalidArgument:
        return f"Rejected argument {argument!r}: digits only."
    except Busy as e:
        return f"{task} is busy ({e.status}). Try again later."

    return f"{task}: {StatusKeyword.REQUESTED}"


def cmd_fetch(state: AppState, args: list[str]) -> str:
    """/fetch <task>"""
    if not args:
        return "Usage: /fetch <task>"
    task = args[0]
    try:
        return f"{task}: {state.service.fetch(task, state.session_id)}"
    except InvalidKey:
        return f"Unknown task: {task}. Use /tasks to list them."


def cmd_tasks(state: AppState, args: list[str]) -> str:
    """
    List the catalog with this session's records.

    Reads the store directly so that listing never consumes a DONE result.
    """
    lines = [f"Tasks (session {state.session_id}):"]
    for spec in state.service.registry:
        if state.store.has(spec.name, state.session_id):
            status = state.store.get(spec.name, state.session_id)
        else:
            status = StatusKeyword.IDLE.value
        arg = " [seconds]" if spec.takes_argument else ""
        lines.append(f"  {spec.name}{arg} - {status}")
    return "\n".join(lines)


def cmd_session(state: AppState, args: list[str]) -> str:
    """/session [id]"""
    if not args:
        return f"Session: {state.session_id}"
    try:
        new_id = int(args[0])
    except ValueError:
        return "Usage: /session <integer id>"
    state.session_id = new_id
    logger.debug("Console session switched to %s", new_id)
    return f"Session: {new_id}"


def cmd_ns(state: AppState, args: list[str]) -> str:
    """/ns [tag] - bind (or with no tag, unbind) the execution namespace of this session."""
    tag = args[0] if args else None
    state.service.bind_namespace(state.session_id, tag)
    if tag:
        return f"Namespace for session {state.session_id}: {tag}"
    return f"Namespace for session {state.session_id} cleared."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("store", cmd_store, help_text="Launch a task: /store <task> [seconds].")
registry.register("fetch", cmd_fetch, help_text="Poll a task's status: /fetch <task>.")
registry.register("tasks", cmd_tasks, help_text="List task types and this session's records.")
registry.register("session", cmd_session, help_text="Show or switch the session id.")
registry.register("ns", cmd_ns, help_text="Bind a container name: /ns <tag> | /ns.")
