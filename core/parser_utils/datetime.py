"""Date/time token helpers for the command grammar.

All instants produced here are aware datetimes in the event time zone, so
comparisons elsewhere never need to shift by a fixed offset.
"""

from __future__ import annotations

import os
import re
from datetime import datetime, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo

DEFAULT_EVENT_TIMEZONE = "Asia/Taipei"

_DATE_TOKEN_PATTERN = re.compile(r"^(?:\d{4}/)?\d{1,2}/\d{1,2}$")
_TIME_TOKEN_PATTERN = re.compile(r"^\d{1,2}:\d{2}$")
_FULL_DATETIME_PATTERN = re.compile(
    r"^(?P<year>\d{4})/(?P<month>\d{1,2})/(?P<day>\d{1,2})\s+(?P<hour>\d{1,2}):(?P<minute>\d{2})$"
)
_SHORT_DATETIME_PATTERN = re.compile(
    r"^(?P<month>\d{1,2})/(?P<day>\d{1,2})\s+(?P<hour>\d{1,2}):(?P<minute>\d{2})$"
)


def get_event_zone(name: Optional[str] = None) -> tzinfo:
    """Return the zone commands are interpreted in (``EVENT_TIMEZONE`` env override)."""

    zone_name = name or os.getenv("EVENT_TIMEZONE", "").strip() or DEFAULT_EVENT_TIMEZONE
    return ZoneInfo(zone_name)


def current_time(tz: Optional[tzinfo] = None) -> datetime:
    return datetime.now(tz or get_event_zone())


def is_date_token(token: Optional[str]) -> bool:
    return bool(token) and bool(_DATE_TOKEN_PATTERN.match(token.strip()))


def is_time_token(token: Optional[str]) -> bool:
    return bool(token) and bool(_TIME_TOKEN_PATTERN.match(token.strip()))


def resolve_datetime(
    raw: str,
    *,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> Optional[datetime]:
    """Turn ``yyyy/M/d H:mm`` or ``M/d H:mm`` into an aware datetime.

    The short form takes the year of ``now`` (the clock at parse time).
    Anything else, including impossible calendar dates, returns ``None``.
    """
    if not raw:
        return None
    text = raw.strip()
    zone = tz or (now.tzinfo if now is not None and now.tzinfo else None) or get_event_zone()

    match = _FULL_DATETIME_PATTERN.match(text)
    if match:
        year = int(match.group("year"))
    else:
        match = _SHORT_DATETIME_PATTERN.match(text)
        if not match:
            return None
        reference = now.astimezone(zone) if now is not None and now.tzinfo else (now or current_time(zone))
        year = reference.year

    try:
        return datetime(
            year,
            int(match.group("month")),
            int(match.group("day")),
            int(match.group("hour")),
            int(match.group("minute")),
            tzinfo=zone,
        )
    except ValueError:
        return None


def format_instant(value: datetime, *, with_year: bool = True, tz: Optional[tzinfo] = None) -> str:
    """Render ``yyyy/M/d HH:mm`` (or ``M/d HH:mm``) in the event zone."""

    local = value.astimezone(tz or get_event_zone()) if value.tzinfo else value
    clock = f"{local.hour:02d}:{local.minute:02d}"
    if with_year:
        return f"{local.year}/{local.month}/{local.day} {clock}"
    return f"{local.month}/{local.day} {clock}"


__all__ = [
    "DEFAULT_EVENT_TIMEZONE",
    "get_event_zone",
    "current_time",
    "is_date_token",
    "is_time_token",
    "resolve_datetime",
    "format_instant",
]
