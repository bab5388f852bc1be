# src/lockin/cli/commands.py

from __future__ import annotations

import inspect
import logging
import re
from collections.abc import Awaitable, Callable
from typing import cast

from ..core.state import AppState
from ..storage.errors import StorageError
from ..tasks.task_models import Task
from ..tasks.task_scheduler import PermissionState
from ..tasks.task_store import TASKS_KEY
from ..util.timefmt import default_reminder, format_for_display, format_for_input, parse_reminder

CommandEmitter = Callable[[str], None]
CommandResult = str | Awaitable[str]
CommandHandler2 = Callable[[AppState, list[str]], CommandResult]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], CommandResult]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

# "<text> @ <when>": the reminder follows the last whitespace-preceded "@".
_WHEN_RE = re.compile(r"^(?P<text>.*?)\s+@\s*(?P<when>[^@]+)$")


class CommandRegistry:
    """Slash-command registry used by the console connector (/help, /add, ...)."""

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

    async def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
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

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            result = cast(CommandHandler3, handler)(state, args, emit)
        else:
            result = cast(CommandHandler2, handler)(state, args)

        if inspect.isawaitable(result):
            return await result
        return result

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- helpers ----


def _describe(index: int, task: Task) -> str:
    mark = "x" if task.completed else " "
    extra = ""
    if task.reminder is not None:
        when = format_for_display(task.reminder)
        extra = f"  ({when}{', alert' if task.notify_enabled else ''})"
    return f"{index:>3}. [{mark}] {task.text}{extra}  #{task.id[:8]}"


def resolve_task(state: AppState, ref: str) -> Task | None:
    """A 1-based position in the full list, or a unique id prefix."""
    ref = ref.strip().lstrip("#")
    tasks = state.tasks.tasks
    if ref.isdigit():
        pos = int(ref)
        if 1 <= pos <= len(tasks):
            return tasks[pos - 1]
        return None
    matches = state.tasks.find_tasks(ref)
    return matches[0] if len(matches) == 1 else None


def _split_when(raw: str) -> tuple[str, str | None]:
    m = _WHEN_RE.match(raw.strip())
    if not m:
        return raw.strip(), None
    return m.group("text").strip(), m.group("when").strip()


# ---- handlers ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_list(state: AppState, args: list[str]) -> str:
    """
    /list            -> pending tasks
    /list completed  -> completed tasks
    /list all        -> everything
    """
    view = (args[0].lower() if args else "pending")
    if view not in ("pending", "completed", "done", "all"):
        return "Usage: /list [pending|completed|all]"

    all_tasks = state.tasks.tasks
    if view == "all":
        shown = all_tasks
        title = "All tasks"
    elif view == "pending":
        shown = state.tasks.pending_tasks
        title = "Pending"
    else:
        shown = state.tasks.completed_tasks
        title = "Completed"

    if not shown:
        return f"{title}: nothing here." + (" Add one with /add <text>." if view == "pending" else "")

    position = {t.id: i for i, t in enumerate(all_tasks, start=1)}
    lines = [f"{title} ({len(shown)}):"]
    lines.extend(_describe(position[t.id], t) for t in shown)
    return "\n".join(lines)


def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add <text>             -> reminder in N minutes (default 30)
    /add <text> @ <when>    -> explicit reminder (+45m, 18:30, 2026-10-19T18:30)
    """
    text, when = _split_when(" ".join(args))
    if not text:
        return "Task text is empty, not adding. Usage: /add <text> [@ <when>]"

    minutes = int(getattr(state.settings, "default_reminder_minutes", 30))
    try:
        reminder = parse_reminder(when) if when else default_reminder(minutes)
    except ValueError as e:
        return f"Cannot read the reminder time: {e}"

    notify = state.profile.notification_preference
    task = state.tasks.add_task(text, reminder, notify)
    if task is None:
        return "Could not add the task (see log)."
    alert = "alert on" if task.notify_enabled else "alert off"
    return f"Added: {task.text} (reminder {format_for_input(reminder)}, {alert})"


def cmd_edit(state: AppState, args: list[str]) -> str:
    """/edit <ref> <new text> [@ <when>]"""
    if len(args) < 2:
        return "Usage: /edit <ref> <new text> [@ <when>]"
    task = resolve_task(state, args[0])
    if task is None:
        return f"No task matches {args[0]!r}."
    text, when = _split_when(" ".join(args[1:]))
    if not text:
        return "Task text is empty, not saving."

    fields: dict[str, object] = {"text": text}
    if when:
        try:
            fields["reminder"] = parse_reminder(when)
        except ValueError as e:
            return f"Cannot read the reminder time: {e}"
    state.tasks.update_task(task.id, **fields)
    return f"Saved: {text}"


def cmd_remind(state: AppState, args: list[str]) -> str:
    """
    /remind <ref> <when>  -> set the reminder and turn its alert on
    /remind <ref> off     -> clear the reminder and its alert
    """
    if len(args) < 2:
        return "Usage: /remind <ref> <when|off>"
    task = resolve_task(state, args[0])
    if task is None:
        return f"No task matches {args[0]!r}."

    when = " ".join(args[1:])
    if when.lower() in ("off", "none", "-"):
        state.tasks.update_task(task.id, reminder=None, notify_enabled=False)
        return f"Reminder cleared: {task.text}"
    try:
        reminder = parse_reminder(when)
    except ValueError as e:
        return f"Cannot read the reminder time: {e}"
    state.tasks.update_task(task.id, reminder=reminder, notify_enabled=True)
    reply = f"Reminder set: {task.text} at {format_for_input(reminder)}"
    if state.scheduler.permission_state is not PermissionState.GRANTED:
        reply += " (alerts are off, use /notify on)"
    return reply


def cmd_done(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /done <ref>"
    task = resolve_task(state, args[0])
    if task is None:
        return f"No task matches {args[0]!r}."
    state.tasks.toggle_complete(task.id)
    return f"{'Reopened' if task.completed else 'Completed'}: {task.text}"


def cmd_delete(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /del <ref>"
    task = resolve_task(state, args[0])
    if task is None:
        return f"No task matches {args[0]!r}."
    state.tasks.delete_task(task.id)
    return f"Deleted: {task.text}"


def cmd_name(state: AppState, args: list[str]) -> str:
    if not args:
        return f"Your name is {state.profile.username}."
    if not state.profile.set_username(" ".join(args)):
        return "Name cannot be empty."
    return f"Hi, {state.profile.username}!"


async def cmd_notify(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /notify      -> show permission + default for new tasks
    /notify on   -> ask for permission (if needed) and default new tasks to alert
    /notify off  -> default new tasks to no alert
    """
    scheduler = state.scheduler
    if not args:
        pref = "on" if state.profile.notification_preference else "off"
        return f"Alerts: {scheduler.permission_state.value}. New tasks alert by default: {pref}."

    arg = args[0].lower()
    if arg in ("on", "1", "true", "yes"):
        if scheduler.permission_state is PermissionState.UNSUPPORTED:
            return "Alerts are not supported here (LOCKIN_NOTIFICATIONS_SUPPORTED=false)."
        if scheduler.permission_state is not PermissionState.GRANTED:
            granted = await scheduler.request_permission()
            if not granted:
                return f"Alert permission is {scheduler.permission_state.value}; reminders stay silent."
        state.profile.set_notification_preference(True)
        return "Alerts on. New tasks will alert at their reminder time."

    if arg in ("off", "0", "false", "no"):
        state.profile.set_notification_preference(False)
        return "New tasks will not alert by default."

    return "Usage: /notify [on|off]"


def cmd_storage(state: AppState, args: list[str]) -> str:
    ok = state.bridge.probe()
    lines = [f"Storage: {'working' if ok else 'NOT working (changes live in memory only)'}"]
    try:
        raw = state.bridge.get(TASKS_KEY)
    except StorageError as e:
        lines.append(f"Error reading tasks: {e}")
    else:
        lines.append(f"Tasks data: {len(raw)} chars" if raw else "No tasks data stored.")
    return "\n".join(lines)


def cmd_status(state: AppState, args: list[str]) -> str:
    settings = state.settings
    return (
        "Status:\n"
        f"  User: {state.profile.username}\n"
        f"  Pending: {len(state.tasks.pending_tasks)}  Completed: {len(state.tasks.completed_tasks)}\n"
        f"  Alerts: {state.scheduler.permission_state.value} "
        f"(loop {'running' if state.scheduler.running else 'idle'})\n"
        f"  Storage: {getattr(settings, 'storage_backend', '?')} "
        f"scope={getattr(settings, 'storage_scope', '?')}"
    )


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("list", cmd_list, help_text="List tasks: /list [pending|completed|all].", aliases=["ls"])
registry.register("add", cmd_add, help_text="Add a task: /add <text> [@ +45m | 18:30 | 2026-10-19T18:30].")
registry.register("edit", cmd_edit, help_text="Edit a task: /edit <ref> <text> [@ <when>].")
registry.register("remind", cmd_remind, help_text="Set or clear a reminder: /remind <ref> <when|off>.")
registry.register("done", cmd_done, help_text="Toggle completed: /done <ref>.", aliases=["toggle"])
registry.register("del", cmd_delete, help_text="Delete a task: /del <ref>.", aliases=["rm", "delete"])
registry.register("name", cmd_name, help_text="Show or change your name: /name [new name].")
registry.register("notify", cmd_notify, help_text="Reminder alerts: /notify [on|off].")
registry.register("storage", cmd_storage, help_text="Check that storage works.")
registry.register("status", cmd_status, help_text="Show counts, alert state and storage.")
