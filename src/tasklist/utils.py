from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable

# A clock returns the current moment as an aware datetime.
Clock = Callable[[], datetime]


# PUBLIC_INTERFACE
def utc_now() -> datetime:
    """Default clock: the current UTC time."""
    return datetime.now(timezone.utc)


# PUBLIC_INTERFACE
def isoformat_utc(moment: datetime) -> str:
    """
    Format a datetime as an ISO8601 UTC string with millisecond precision and a
    'Z' suffix, e.g. '2025-01-31T09:30:00.000Z'.

    Naive datetimes are assumed to already be in UTC.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.replace(tzinfo=None).isoformat(timespec="milliseconds") + "Z"


# PUBLIC_INTERFACE
def backup_filename(moment: datetime) -> str:
    """Return the export file name for the given moment: tasks-backup-<YYYY-MM-DD>.json."""
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return f"tasks-backup-{moment.date().isoformat()}.json"


# PUBLIC_INTERFACE
def is_int_id(value: Any) -> bool:
    """True for integer task ids; bools are not ids even though bool subclasses int."""
    return isinstance(value, int) and not isinstance(value, bool)
