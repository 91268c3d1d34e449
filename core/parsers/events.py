"""Builders for commands that create or look up stored outings."""

from __future__ import annotations

import logging
from datetime import datetime, tzinfo
from typing import Optional, Type, Union

from core.outcomes import ParseFailure
from core.parser_utils import is_date_token, is_time_token, resolve_datetime, split_meta
from core.parsers.meta import parse_event_meta, parse_game_meta, split_bare_choice
from core.parsers.types import AddCommand, DeleteCommand, NoneCommand, ParsedCommand, QueryCommand

logger = logging.getLogger(__name__)


def build_add(body: Optional[str], *, now: Optional[datetime] = None, tz: Optional[tzinfo] = None) -> ParsedCommand:
    """``<date> <time> <title> [(<location> [index])]``."""

    head, meta = split_meta(body or "")
    if head is None:
        return NoneCommand(reason="malformed_meta")

    parts = head.split(None, 2)
    if len(parts) < 3:
        return NoneCommand(reason="missing_fields")
    date_part, time_part, title = parts
    if not is_date_token(date_part) or not is_time_token(time_part):
        return NoneCommand(reason="missing_fields")

    event_time = resolve_datetime(f"{date_part} {time_part}", now=now, tz=tz)
    if event_time is None:
        logger.warning("Failed to parse datetime %s %s", date_part, time_part)
        return NoneCommand(reason="invalid_datetime")

    title = title.strip()
    if meta is None:
        title, choice_index = split_bare_choice(title)
        return AddCommand(title=title, event_time=event_time, choice_index=choice_index)

    game_meta = parse_game_meta(meta)
    return AddCommand(
        title=title,
        event_time=event_time,
        location=game_meta.location,
        choice_index=game_meta.choice_index,
    )


def build_query(body: Optional[str], *, now: Optional[datetime] = None, tz: Optional[tzinfo] = None) -> ParsedCommand:
    """``<title> [(<date> [<time>] [<location>])]``."""

    return _build_lookup(QueryCommand, body, now=now, tz=tz)


def build_delete(body: Optional[str], *, now: Optional[datetime] = None, tz: Optional[tzinfo] = None) -> ParsedCommand:
    """Same shape as :func:`build_query`."""

    return _build_lookup(DeleteCommand, body, now=now, tz=tz)


def _build_lookup(
    command_cls: Type[Union[QueryCommand, DeleteCommand]],
    body: Optional[str],
    *,
    now: Optional[datetime],
    tz: Optional[tzinfo],
) -> ParsedCommand:
    head, meta = split_meta(body or "")
    if head is None:
        return NoneCommand(reason="malformed_meta")
    title = head.strip()
    if not title:
        return NoneCommand(reason="missing_title")
    if meta is None:
        return command_cls(title=title)

    parsed = parse_event_meta(meta, now=now, tz=tz)
    if isinstance(parsed, ParseFailure):
        logger.warning("Rejected %s qualifier %r: %s", command_cls.kind, parsed.raw, parsed.reason)
        return NoneCommand(reason=parsed.reason)
    return command_cls(
        title=title,
        event_time=parsed.event_time,
        event_time_has_hour=parsed.event_time_has_hour,
        location=parsed.location,
    )


__all__ = ["build_add", "build_query", "build_delete"]
