"""Builders for commands that only look a game up in the catalog."""

from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Optional, Type, Union

from core.parser_utils import split_meta
from core.parsers.meta import parse_game_meta
from core.parsers.types import CommentCommand, NoneCommand, ParsedCommand, SearchCommand


def build_search(body: Optional[str], *, now: Optional[datetime] = None, tz: Optional[tzinfo] = None) -> ParsedCommand:
    return _build_game_lookup(SearchCommand, body)


def build_comment(body: Optional[str], *, now: Optional[datetime] = None, tz: Optional[tzinfo] = None) -> ParsedCommand:
    return _build_game_lookup(CommentCommand, body)


def _build_game_lookup(command_cls: Type[Union[SearchCommand, CommentCommand]], body: Optional[str]) -> ParsedCommand:
    head, meta = split_meta(body or "")
    if head is None:
        return NoneCommand(reason="malformed_meta")
    title = head.strip()
    if not title:
        return NoneCommand(reason="missing_title")
    game_meta = parse_game_meta(meta)
    return command_cls(title=title, location=game_meta.location, choice_index=game_meta.choice_index)


__all__ = ["build_search", "build_comment"]
