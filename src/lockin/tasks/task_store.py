# src/lockin/tasks/task_store.py

from __future__ import annotations

import json
import logging
import random
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Any

from ..storage.bridge import KeyValueBridge
from ..storage.cell import ErrorHandler, PersistedCell
from ..util.timefmt import normalize_timestamp, parse_iso, truncate_to_ms
from .task_models import EDITABLE_FIELDS, Task

logger = logging.getLogger(__name__)

TASKS_KEY = "tasks"


# ---- id generation ----


def _fallback_task_id() -> str:
    # 8-4-4-4-12 hex, version nibble 4, variant nibble 8..b. Not cryptographically secure.
    def hex_digit(c: str) -> str:
        r = random.getrandbits(4)
        return format(r if c == "x" else (r & 0x3) | 0x8, "x")

    return "".join(hex_digit(c) if c in "xy" else c for c in "xxxxxxxx-xxxx-4xxx-yxxx-xxxxxxxxxxxx")


def generate_task_id() -> str:
    try:
        return str(uuid.uuid4())
    except NotImplementedError:
        logger.warning("OS randomness source unavailable, using pseudo-random task id")
        return _fallback_task_id()


# ---- codec ----


def _task_to_record(task: Task) -> dict[str, Any]:
    return {
        "id": task.id,
        "text": task.text,
        "completed": task.completed,
        "reminder": normalize_timestamp(task.reminder),
        "notifyEnabled": task.notify_enabled,
    }


def serialize_tasks(tasks: list[Task]) -> str:
    """JSON array; reminders become ISO strings (or null) whatever form they are held in."""
    return json.dumps([_task_to_record(t) for t in tasks], ensure_ascii=False, separators=(",", ":"))


def _record_to_task(raw: Any) -> Task | None:
    """
    Re-validate one decoded record.

    Garbage from older schema versions is coerced to safe defaults, never inherited.
    """
    if not isinstance(raw, dict):
        return None
    task_id = raw.get("id")
    if not isinstance(task_id, str) or not task_id:
        return None

    text = raw.get("text")
    completed = raw.get("completed")

    reminder: datetime | None = None
    raw_reminder = raw.get("reminder")
    if isinstance(raw_reminder, str) and raw_reminder.strip():
        try:
            reminder = parse_iso(raw_reminder)
        except ValueError:
            logger.warning("Task %s has an unreadable reminder %r; dropping it", task_id, raw_reminder)

    notify = raw.get("notifyEnabled")
    notify_enabled = notify if isinstance(notify, bool) else False

    return Task(
        id=task_id,
        text="" if text is None else str(text),
        completed=completed if isinstance(completed, bool) else False,
        reminder=reminder,
        notify_enabled=notify_enabled and reminder is not None,
    )


def deserialize_tasks(raw: str) -> list[Task]:
    """Decode the stored list. Raises ValueError if the payload is not a JSON array."""
    data = json.loads(raw)
    if not isinstance(data, list):
        raise ValueError(f"expected a JSON array of tasks, got {type(data).__name__}")

    out: list[Task] = []
    for item in data:
        task = _record_to_task(item)
        if task is None:
            logger.warning("Skipping malformed task record: %r", item)
            continue
        out.append(task)
    return out


# ---- store ----


def _coerce_reminder(value: Any) -> datetime | None:
    """Datetime, ISO string or None; kept at the stored (millisecond) precision."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return truncate_to_ms(value)
    if isinstance(value, str):
        return truncate_to_ms(parse_iso(value)) if value.strip() else None
    raise ValueError(f"reminder must be a datetime, an ISO string or None, got {type(value).__name__}")


def _coerce_update(fields: dict[str, Any]) -> dict[str, Any]:
    """Validate a partial update. Raises ValueError on unknown fields or wrong value types."""
    unknown = set(fields) - EDITABLE_FIELDS
    if unknown:
        raise ValueError(f"fields cannot be updated: {', '.join(sorted(unknown))}")

    out = dict(fields)
    if "text" in out and not isinstance(out["text"], str):
        raise ValueError(f"text must be a string, got {type(out['text']).__name__}")
    for name in ("completed", "notify_enabled"):
        if name in out and not isinstance(out[name], bool):
            raise ValueError(f"{name} must be a bool, got {type(out[name]).__name__}")
    if "reminder" in out:
        out["reminder"] = _coerce_reminder(out["reminder"])
    return out


def _log_storage_error(error: Exception) -> None:
    logger.error("Task storage error: %s", error)


class TaskStore:
    """
    Task list persisted under a single key.

    The list is replaced (never mutated in place) on every change, so a reader
    holding `tasks` always sees one consistent snapshot.

    Mutations never raise: internal failures are logged and the call becomes a no-op.
    """

    def __init__(
        self,
        bridge: KeyValueBridge,
        *,
        key: str = TASKS_KEY,
        on_error: ErrorHandler | None = None,
    ) -> None:
        self._cell: PersistedCell[list[Task]] = PersistedCell(
            bridge,
            key,
            [],
            serialize=serialize_tasks,
            deserialize=deserialize_tasks,
            on_error=on_error or _log_storage_error,
        )
        logger.info("TaskStore ready key=%s total=%d", key, len(self._cell.value))

    # ---- read side ----

    @property
    def tasks(self) -> list[Task]:
        return list(self._cell.value)

    @property
    def pending_tasks(self) -> list[Task]:
        return [t for t in self._cell.value if not t.completed]

    @property
    def completed_tasks(self) -> list[Task]:
        return [t for t in self._cell.value if t.completed]

    def get_task(self, task_id: str) -> Task | None:
        for t in self._cell.value:
            if t.id == task_id:
                return t
        return None

    def find_tasks(self, id_prefix: str) -> list[Task]:
        if not id_prefix:
            return []
        return [t for t in self._cell.value if t.id.startswith(id_prefix)]

    # ---- write side ----

    def add_task(self, text: str, reminder: datetime | None, notify: bool) -> Task | None:
        """
        Append a new task. Text validation (non-empty after trim) is the caller's job.

        notify_enabled is forced off when there is no reminder.
        """
        try:
            when = _coerce_reminder(reminder)
            task = Task(
                id=generate_task_id(),
                text=text,
                completed=False,
                reminder=when,
                notify_enabled=bool(notify) and when is not None,
            )
            self._cell.set(lambda prev: [*prev, task])
            logger.debug("Task added id=%s reminder=%s notify=%s", task.id, reminder, task.notify_enabled)
            return task
        except Exception:
            logger.exception("Error adding task")
            return None

    def update_task(self, task_id: str, **fields: Any) -> None:
        """
        Replace only the named fields of one task.

        Unknown id -> no-op. Unknown fields or wrongly typed values are logged
        and nothing is written; a string reminder is parsed as ISO-8601.
        """
        try:
            fields = _coerce_update(fields)
            if self.get_task(task_id) is None:
                logger.debug("update_task: no task id=%s", task_id)
                return
            self._cell.set(lambda prev: [replace(t, **fields) if t.id == task_id else t for t in prev])
            logger.debug("Task updated id=%s fields=%s", task_id, sorted(fields))
        except Exception:
            logger.exception("Error updating task %s", task_id)

    def delete_task(self, task_id: str) -> None:
        try:
            if self.get_task(task_id) is None:
                logger.debug("delete_task: no task id=%s", task_id)
                return
            self._cell.set(lambda prev: [t for t in prev if t.id != task_id])
            logger.debug("Task deleted id=%s", task_id)
        except Exception:
            logger.exception("Error deleting task %s", task_id)

    def toggle_complete(self, task_id: str) -> None:
        try:
            if self.get_task(task_id) is None:
                logger.debug("toggle_complete: no task id=%s", task_id)
                return
            self._cell.set(
                lambda prev: [replace(t, completed=not t.completed) if t.id == task_id else t for t in prev]
            )
        except Exception:
            logger.exception("Error toggling completion for task %s", task_id)
