"""lockin: a console task tracker with persisted tasks and due-time reminders."""

__version__ = "0.1.0"
