# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "LOCKIN_APP_NAME": "App display name (default: lockin).",
    "LOCKIN_LOG_LEVEL": "Console logging level (default: WARNING). The log file always gets DEBUG.",
    "LOCKIN_LOG_FILE_MAX_BYTES": "Rotate <data_dir>/lockin.log at this size, 0 = never (default: 1048576).",
    "LOCKIN_LOG_FILE_BACKUPS": "Rotated log files to keep (default: 3).",
    # Storage
    "LOCKIN_DATA_DIR": "Local data directory (default: .local/lockin).",
    "LOCKIN_STORAGE_BACKEND": "sqlite (durable) or memory (session only). Default: sqlite.",
    "LOCKIN_STORAGE_PATH": "Key-value SQLite path (default: <data_dir>/storage.sqlite3).",
    "LOCKIN_STORAGE_SCOPE": "Partition inside the storage file, like a browser origin (default: default).",
    "LOCKIN_STORAGE_QUOTA_BYTES": "Max stored bytes per scope, 0 = unlimited (default: 5242880).",
    # Profile
    "LOCKIN_DEFAULT_USERNAME": "Name used until /name is set (default: User).",
    # Reminders
    "LOCKIN_REMINDER_POLL_SECONDS": "Reminder check interval (default: 10).",
    "LOCKIN_REMINDER_WINDOW_SECONDS": "How long after its due time a reminder may still alert (default: 60).",
    "LOCKIN_DEFAULT_REMINDER_MINUTES": "Reminder offset for /add without @ (default: 30).",
    "LOCKIN_NOTIFICATIONS_SUPPORTED": "false disables alerts entirely (permission: unsupported).",
    "LOCKIN_NOTIFICATION_PERMISSION": "Starting permission: default, granted or denied (default: default).",
}
