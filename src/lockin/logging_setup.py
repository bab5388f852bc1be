# src/lockin/logging_setup.py

"""
Process-wide logging for the console app.

Two handlers on the root logger:
- stderr, filtered per logger prefix so background chatter never interleaves with the prompt
- a size-rotated file in the data dir that keeps everything at DEBUG
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

LOG_FILE_NAME = "lockin.log"
LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Longest matching prefix wins. Anything unmatched falls back to DEFAULT_CONSOLE_FLOOR.
CONSOLE_FLOORS: dict[str, int] = {
    "lockin": logging.NOTSET,
    # one line per write
    "lockin.storage": logging.WARNING,
    # background loop
    "lockin.tasks.task_scheduler": logging.WARNING,
    "py.warnings": logging.ERROR,
}
DEFAULT_CONSOLE_FLOOR = logging.ERROR


def _matches(name: str, prefix: str) -> bool:
    return name == prefix or name.startswith(prefix + ".")


class PrefixLevelFilter(logging.Filter):
    """Drop records below the floor configured for the most specific matching logger prefix."""

    def __init__(self, floors: dict[str, int] | None = None, default: int = DEFAULT_CONSOLE_FLOOR) -> None:
        super().__init__()
        self._floors = sorted((floors if floors is not None else CONSOLE_FLOORS).items(), key=lambda kv: -len(kv[0]))
        self._default = default

    def floor_for(self, name: str) -> int:
        for prefix, level in self._floors:
            if _matches(name, prefix):
                return level
        return self._default

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= self.floor_for(record.name)


def resolve_level(name: Any, default: int = logging.WARNING) -> int:
    """"debug"/"INFO"/20 -> logging level int; unknown names give the default."""
    if isinstance(name, int):
        return name
    level = logging.getLevelName(str(name or "").strip().upper())
    return level if isinstance(level, int) else default


def setup_logging(settings: Any, *, stream: Any = None) -> Path:
    """
    Install the console and file handlers. Returns the log file path.

    Reads `log_level`, `data_dir` and, when present, `log_file_max_bytes` /
    `log_file_backups` from settings. Calling it again replaces the handlers.
    """
    log_dir = Path(settings.data_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    console = logging.StreamHandler(stream or sys.stderr)
    console.setLevel(resolve_level(getattr(settings, "log_level", "WARNING")))
    console.setFormatter(fmt)
    console.addFilter(PrefixLevelFilter())
    root.addHandler(console)

    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=max(0, int(getattr(settings, "log_file_max_bytes", 1024 * 1024))),
        backupCount=max(0, int(getattr(settings, "log_file_backups", 3))),
        encoding="utf-8",
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    logging.captureWarnings(True)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    return log_file
