# src/lockin/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..util.timefmt import parse_iso, to_epoch_ms

# Fields the UI may change through TaskStore.update_task (id is immutable).
EDITABLE_FIELDS = frozenset({"text", "completed", "reminder", "notify_enabled"})


@dataclass(slots=True, frozen=True)
class Task:
    """
    A to-do item.

    Notes:
    - id is opaque and never changes; it is the only identity key
    - reminder is an aware datetime (UTC after a load from storage) or None;
      an ISO string is tolerated and read as the instant it names
    - notify_enabled only means something when reminder is set
    """

    id: str
    text: str
    completed: bool = False
    reminder: datetime | str | None = None
    notify_enabled: bool = False

    @property
    def reminder_ms(self) -> int | None:
        """Reminder instant in whole epoch milliseconds (same truncation as the stored form)."""
        value = self.reminder
        if value is None or value == "":
            return None
        if isinstance(value, str):
            value = parse_iso(value)
        return to_epoch_ms(value)
