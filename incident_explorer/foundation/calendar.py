"""Calendar arithmetic on timezone-aware datetimes.

All timestamps in incident-explorer are timezone-aware.  Calendar
operations (month steps, local midnight, local hour) happen in a display
zone chosen by configuration; this module is the single place that knows
how to resolve and apply it.
"""

from __future__ import annotations

import calendar
import re
from datetime import datetime, timezone, tzinfo
from functools import lru_cache
from zoneinfo import ZoneInfo

from pydantic import TypeAdapter, ValidationError


@lru_cache(maxsize=None)
def resolve_zone(name: str) -> tzinfo:
    """Return the tzinfo for an IANA zone name ("UTC" short-circuits)."""
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def ensure_aware(value: datetime, tz: tzinfo = timezone.utc) -> datetime:
    """Attach *tz* (UTC by default) to a naive datetime; aware values pass through."""
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value


def add_months(value: datetime, months: int) -> datetime:
    """Move *value* by whole calendar months, keeping the wall-clock time.

    The day of month is preserved where the target month has it, and
    clamped to the target month's last day otherwise (Jan 31 + 1 → Feb 28/29).
    """
    total = value.year * 12 + (value.month - 1) + months
    year, month = divmod(total, 12)
    month += 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def to_iso_utc(value: datetime) -> str:
    """ISO-8601 in UTC with a trailing ``Z`` (the form written to links)."""
    text = ensure_aware(value).astimezone(timezone.utc).isoformat()
    return text.replace("+00:00", "Z")


_DATETIME = TypeAdapter(datetime)
# pydantic reads bare numbers as epoch seconds
_NUMERIC = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


def parse_iso(text: str, tz: tzinfo = timezone.utc) -> datetime | None:
    """Parse an ISO-8601 string into an aware datetime, or None if invalid.

    A value without an offset is read as wall-clock time in *tz*.  Bare
    numbers are not dates.
    """
    text = text.strip()
    if _NUMERIC.fullmatch(text):
        return None
    try:
        return ensure_aware(_DATETIME.validate_python(text), tz)
    except ValidationError:
        return None
