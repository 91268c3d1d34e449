"""Parsing of the optional ``(<meta>)`` qualifier that follows a title."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import List, Optional, Tuple, Union

from core.outcomes import ParseFailure
from core.parser_utils import is_date_token, is_plain_integer, is_time_token, join_tokens, resolve_datetime, tokenize


@dataclass(frozen=True)
class EventMeta:
    event_time: Optional[datetime] = None
    event_time_has_hour: Optional[bool] = None
    location: Optional[str] = None


@dataclass(frozen=True)
class GameMeta:
    location: Optional[str] = None
    choice_index: Optional[int] = None


def parse_event_meta(
    meta: Optional[str],
    *,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> Union[EventMeta, ParseFailure]:
    """Read ``[date [time]] [location...]`` for query/delete commands.

    A date with no time lands on 00:00 and flags day-range matching. A first
    token that is not date-shaped makes the whole qualifier a location.
    """
    parts = tokenize(meta)
    if not parts:
        return EventMeta()

    date_part = parts[0]
    if not is_date_token(date_part):
        return EventMeta(location=join_tokens(parts))

    time_part = parts[1] if len(parts) > 1 else None
    if is_time_token(time_part):
        event_time = resolve_datetime(f"{date_part} {time_part}", now=now, tz=tz)
        if event_time is None:
            return ParseFailure(raw=meta or "", reason="invalid_datetime")
        return EventMeta(event_time=event_time, event_time_has_hour=True, location=join_tokens(parts[2:]))

    event_time = resolve_datetime(f"{date_part} 00:00", now=now, tz=tz)
    if event_time is None:
        return ParseFailure(raw=meta or "", reason="invalid_date")
    return EventMeta(event_time=event_time, event_time_has_hour=False, location=join_tokens(parts[1:]))


def parse_game_meta(meta: Optional[str]) -> GameMeta:
    """Read ``[location...] [index]`` for commands that name a catalog game."""

    parts = tokenize(meta)
    if not parts:
        return GameMeta()
    choice_index, rest = _pop_choice_index(parts)
    return GameMeta(location=join_tokens(rest), choice_index=choice_index)


def split_bare_choice(title: str) -> Tuple[str, Optional[int]]:
    """Peel a trailing bare index off a multi-word title (``add`` only)."""

    parts = title.rsplit(None, 1)
    if len(parts) < 2 or not is_plain_integer(parts[1]):
        return title, None
    return parts[0].strip(), int(parts[1])


def _pop_choice_index(parts: List[str]) -> Tuple[Optional[int], List[str]]:
    last = parts[-1]
    if is_plain_integer(last):
        return int(last), parts[:-1]
    return None, parts


__all__ = ["EventMeta", "GameMeta", "parse_event_meta", "parse_game_meta", "split_bare_choice"]
