# src/big_frogs/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from ..core.state import AppState
from ..tasks.task_models import DailyTask, FrogTask
from ..tasks.task_store import StoreResult

CommandHandler = Callable[[AppState, list[str]], str]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /frogs, ...)."""

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


def _mark(completed: bool) -> str:
    return "[x]" if completed else "[ ]"


def render_frogs(tasks: Sequence[FrogTask]) -> str:
    if not tasks:
        return "No big frogs today. Add one with /frogs add [priority] <text>."
    lines = ["Big frogs:"]
    for i, t in enumerate(tasks, start=1):
        lines.append(f"  {i}. {_mark(t.completed)} [{t.priority}] {t.text}  (id={t.id})")
    return "\n".join(lines)


def render_daily(tasks: Sequence[DailyTask]) -> str:
    if not tasks:
        return "No daily tasks yet. Add one with /daily add <text>."
    lines = ["Daily tasks:"]
    for i, t in enumerate(tasks, start=1):
        lines.append(f"  {i}. {_mark(t.completed)} {t.text}  (id={t.id})")
    return "\n".join(lines)


def resolve_ref(tasks: Sequence[FrogTask | DailyTask], ref: str) -> str | None:
    """A ref is a task id or a 1-based position in the presented list."""
    for t in tasks:
        if t.id == ref:
            return t.id
    if ref.isdigit() and 1 <= int(ref) <= len(tasks):
        return tasks[int(ref) - 1].id
    return None


def _with_status(result: StoreResult, rendered: str) -> str:
    if result.ok:
        return rendered
    return f"{rendered}\n(Not saved: {result.error})"


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    settings = state.settings
    reminder = state.daily.next_reminder
    return (
        "Status:\n"
        f"  Storage: {getattr(settings, 'db_path', '?')}\n"
        f"  Big frogs: {len(state.big_frogs.tasks)}\n"
        f"  Daily tasks: {len(state.daily.tasks)}\n"
        f"  Next reminder: {reminder.strftime('%Y-%m-%d %H:%M') if reminder else 'none'}"
    )


def cmd_frogs(state: AppState, args: list[str]) -> str:
    """
    /frogs                         -> list
    /frogs add [priority] <text>   -> add a big frog (priority defaults to 1)
    /frogs done <id|n>             -> toggle completion
    """
    store = state.big_frogs
    if not args:
        return render_frogs(store.tasks)

    sub = args[0].lower()

    if sub == "add":
        rest = args[1:]
        priority = 1
        if len(rest) > 1 and rest[0].lstrip("-").isdigit():
            priority = int(rest[0])
            rest = rest[1:]
        text = " ".join(rest)
        if not text.strip():
            return "Usage: /frogs add [priority] <text>"
        result = state.runtime.run(store.add(text, priority))
        return _with_status(result, render_frogs(result.tasks))

    if sub in ("done", "toggle"):
        if len(args) < 2:
            return "Usage: /frogs done <id|n>"
        task_id = resolve_ref(store.tasks, args[1])
        if task_id is None:
            return f"No big frog {args[1]!r}."
        result = state.runtime.run(store.toggle(task_id))
        return _with_status(result, render_frogs(result.tasks))

    return "Usage: /frogs | /frogs add [priority] <text> | /frogs done <id|n>"


def cmd_daily(state: AppState, args: list[str]) -> str:
    """
    /daily                 -> list
    /daily add <text>      -> add a daily task
    /daily done <id|n>     -> toggle completion
    """
    store = state.daily
    if not args:
        return render_daily(store.tasks)

    sub = args[0].lower()

    if sub == "add":
        text = " ".join(args[1:])
        if not text.strip():
            return "Usage: /daily add <text>"
        result = state.runtime.run(store.add(text))
        return _with_status(result, render_daily(result.tasks))

    if sub in ("done", "toggle"):
        if len(args) < 2:
            return "Usage: /daily done <id|n>"
        task_id = resolve_ref(store.tasks, args[1])
        if task_id is None:
            return f"No daily task {args[1]!r}."
        result = state.runtime.run(store.toggle(task_id))
        return _with_status(result, render_daily(result.tasks))

    return "Usage: /daily | /daily add <text> | /daily done <id|n>"


def cmd_reminder(state: AppState, args: list[str]) -> str:
    reminder = state.daily.next_reminder
    if reminder is None:
        return "No reminder scheduled."
    return f"Daily reminder at {reminder.strftime('%Y-%m-%d %H:%M')}."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show storage path, task counts and next reminder.")
registry.register(
    "frogs", cmd_frogs, help_text="Big frogs: /frogs | /frogs add [priority] <text> | /frogs done <id|n>.",
    aliases=["f"],
)
registry.register(
    "daily", cmd_daily, help_text="Daily tasks: /daily | /daily add <text> | /daily done <id|n>.",
    aliases=["d"],
)
registry.register("reminder", cmd_reminder, help_text="Show when the daily reminder fires.")
