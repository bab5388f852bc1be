# src/lockin/core/state.py

from __future__ import annotations

from dataclasses import dataclass

from ..storage.bridge import KeyValueBridge
from ..tasks.profile import UserProfile
from ..tasks.task_scheduler import ReminderScheduler
from ..tasks.task_store import TaskStore


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: object

    bridge: KeyValueBridge
    tasks: TaskStore
    profile: UserProfile
    scheduler: ReminderScheduler
