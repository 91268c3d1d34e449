"""Match query/delete criteria against a creator's stored outings."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta, tzinfo
from typing import Iterable, List, Optional, Sequence

from core.locations import same_location
from core.models import CreatorContext, StoredEvent
from core.outcomes import Ambiguous, NotFound, Resolution, Resolved
from core.parser_utils import get_event_zone
from core.parsers.types import EventLookupCommand

_END_OF_DAY = timedelta(days=1) - timedelta(microseconds=1)


@dataclass(frozen=True)
class MatchCriteria:
    creator_id: str
    creator_kind: str
    title: str
    event_time: Optional[datetime] = None
    event_time_has_hour: Optional[bool] = None
    location: Optional[str] = None


def criteria_from_command(command: EventLookupCommand, creator: CreatorContext) -> MatchCriteria:
    return MatchCriteria(
        creator_id=creator.id,
        creator_kind=creator.kind,
        title=command.title,
        event_time=command.event_time,
        event_time_has_hour=command.event_time_has_hour,
        location=command.location,
    )


def match_events(
    criteria: MatchCriteria,
    events: Iterable[StoredEvent],
    *,
    tz: Optional[tzinfo] = None,
) -> Resolution[StoredEvent]:
    """Filter by exact title, then instant or calendar day, then location (by venue)."""

    matched = [
        event
        for event in events
        if event.creator_id == criteria.creator_id
        and event.creator_kind == criteria.creator_kind
        and event.title == criteria.title
    ]

    if criteria.event_time is not None:
        if criteria.event_time_has_hour:
            matched = [event for event in matched if event.event_time == criteria.event_time]
        else:
            day_start, day_end = day_bounds(criteria.event_time, tz=tz)
            matched = [event for event in matched if day_start <= event.event_time <= day_end]

    if criteria.location:
        matched = [event for event in matched if same_location(event.location, criteria.location)]

    if not matched:
        return NotFound(reason="no_matching_event")
    if len(matched) == 1:
        return Resolved(matched[0])
    return Ambiguous.of(matched)


def day_bounds(value: datetime, *, tz: Optional[tzinfo] = None) -> tuple[datetime, datetime]:
    """First and last representable instant of ``value``'s calendar day."""

    zone = tz or value.tzinfo or get_event_zone()
    local = value.astimezone(zone) if value.tzinfo else value.replace(tzinfo=zone)
    start = datetime.combine(local.date(), time(0, 0), tzinfo=zone)
    return start, start + _END_OF_DAY


def select_upcoming(events: Sequence[StoredEvent], now: datetime) -> List[StoredEvent]:
    return sorted((event for event in events if event.event_time > now), key=lambda event: event.event_time)


def select_history(events: Sequence[StoredEvent], now: datetime) -> List[StoredEvent]:
    return sorted((event for event in events if event.event_time < now), key=lambda event: event.event_time)


def format_event_choices(events: Sequence[StoredEvent]) -> str:
    return "\n".join(f"{idx}. {event.title}" for idx, event in enumerate(events, start=1))


__all__ = [
    "MatchCriteria",
    "criteria_from_command",
    "match_events",
    "day_bounds",
    "select_upcoming",
    "select_history",
    "format_event_choices",
]
