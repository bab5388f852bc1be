# src/lockin/util/timefmt.py

"""
Date/time helpers shared by the task codec and the console UI.

Storage format is ISO-8601 UTC with millisecond precision ("2026-10-19T16:30:00.000Z").
User input is interpreted in the host's local timezone.
"""

from __future__ import annotations

import logging
import re
from datetime import UTC, datetime, timedelta

logger = logging.getLogger(__name__)

INPUT_FORMAT = "%Y-%m-%dT%H:%M"

_RELATIVE_RE = re.compile(r"^\+(\d+)\s*([mhd])$", re.IGNORECASE)
_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})$")
_UNITS = {"m": "minutes", "h": "hours", "d": "days"}


def to_utc(value: datetime) -> datetime:
    """Aware UTC datetime. Naive values are taken as local time."""
    return value.astimezone(UTC)


_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def to_epoch_ms(value: datetime) -> int:
    """Whole milliseconds since the epoch, truncated (the precision stored on disk)."""
    return (to_utc(value) - _EPOCH) // timedelta(milliseconds=1)


def truncate_to_ms(value: datetime) -> datetime:
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def to_iso_z(value: datetime) -> str:
    utc = to_utc(value)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def parse_iso(raw: str) -> datetime:
    """Parse an ISO-8601 string into an aware UTC datetime. Raises ValueError."""
    s = raw.strip()
    if not s:
        raise ValueError("empty timestamp")
    if s.endswith(("Z", "z")):
        s = s[:-1] + "+00:00"
    return to_utc(datetime.fromisoformat(s))


def normalize_timestamp(value: datetime | str | None) -> str | None:
    """Canonical stored form of a reminder, whether it is held as datetime or string."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return to_iso_z(value)
    if isinstance(value, str):
        if not value.strip():
            return None
        return to_iso_z(parse_iso(value))
    raise TypeError(f"unsupported reminder type: {type(value).__name__}")


def local_now() -> datetime:
    return datetime.now().astimezone()


def default_reminder(minutes: int = 30, *, now: datetime | None = None) -> datetime:
    base = now or local_now()
    return (base + timedelta(minutes=minutes)).replace(second=0, microsecond=0)


def format_for_input(value: datetime) -> str:
    """Local "YYYY-MM-DDTHH:MM" (the datetime-local input format)."""
    return value.astimezone().strftime(INPUT_FORMAT)


def parse_reminder(text: str, *, now: datetime | None = None) -> datetime:
    """
    Parse a user-entered reminder.

    Accepted:
    - "+30m", "+2h", "+1d"   relative to now
    - "18:30"                today, local time
    - "2026-10-19T18:30"     local time (also with a space instead of T)
    - any ISO-8601 timestamp with an offset
    """
    s = (text or "").strip()
    if not s:
        raise ValueError("empty reminder")
    base = now or local_now()

    m = _RELATIVE_RE.match(s)
    if m:
        amount, unit = int(m.group(1)), m.group(2).lower()
        return base + timedelta(**{_UNITS[unit]: amount})

    m = _CLOCK_RE.match(s)
    if m:
        hour, minute = int(m.group(1)), int(m.group(2))
        return base.astimezone().replace(hour=hour, minute=minute, second=0, microsecond=0)

    try:
        parsed = datetime.fromisoformat(s[:-1] + "+00:00" if s.endswith(("Z", "z")) else s)
    except ValueError as e:
        raise ValueError(f"unrecognized reminder time: {text!r}") from e
    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return parsed


def format_for_display(value: datetime | str | None) -> str:
    if not value:
        return ""
    try:
        dt = value if isinstance(value, datetime) else parse_iso(value)
        return dt.astimezone().strftime("%b %d, %H:%M")
    except (ValueError, TypeError, OverflowError):
        logger.debug("Cannot format %r for display", value)
        return ""


def determine_greeting(now: datetime | None = None) -> str:
    hour = (now or local_now()).hour
    if 5 <= hour < 12:
        return "morning"
    if 12 <= hour < 18:
        return "afternoon"
    return "evening"
