"""Typed command variants produced by the parser.

Each command kind is its own frozen dataclass carrying only the fields that
kind uses, so an ``add`` can never arrive without an instant and a ``help``
can never carry a title.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import ClassVar, Optional, Union


@dataclass(frozen=True)
class AddCommand:
    kind: ClassVar[str] = "add"

    title: str
    event_time: datetime
    location: Optional[str] = None
    choice_index: Optional[int] = None


@dataclass(frozen=True)
class QueryUpcomingsCommand:
    kind: ClassVar[str] = "queryUpcomings"


@dataclass(frozen=True)
class QueryHistoryCommand:
    kind: ClassVar[str] = "queryHistory"


@dataclass(frozen=True)
class QueryCommand:
    kind: ClassVar[str] = "query"

    title: str
    event_time: Optional[datetime] = None
    event_time_has_hour: Optional[bool] = None
    location: Optional[str] = None


@dataclass(frozen=True)
class DeleteCommand:
    kind: ClassVar[str] = "delete"

    title: str
    event_time: Optional[datetime] = None
    event_time_has_hour: Optional[bool] = None
    location: Optional[str] = None


@dataclass(frozen=True)
class SearchCommand:
    kind: ClassVar[str] = "search"

    title: str
    location: Optional[str] = None
    choice_index: Optional[int] = None


@dataclass(frozen=True)
class CommentCommand:
    kind: ClassVar[str] = "comment"

    title: str
    location: Optional[str] = None
    choice_index: Optional[int] = None


@dataclass(frozen=True)
class HelpCommand:
    kind: ClassVar[str] = "help"


@dataclass(frozen=True)
class NoneCommand:
    kind: ClassVar[str] = "none"

    reason: Optional[str] = None


EventLookupCommand = Union[QueryCommand, DeleteCommand]
GameLookupCommand = Union[AddCommand, SearchCommand, CommentCommand]
ParsedCommand = Union[
    AddCommand,
    QueryUpcomingsCommand,
    QueryHistoryCommand,
    QueryCommand,
    DeleteCommand,
    SearchCommand,
    CommentCommand,
    HelpCommand,
    NoneCommand,
]


__all__ = [
    "AddCommand",
    "QueryUpcomingsCommand",
    "QueryHistoryCommand",
    "QueryCommand",
    "DeleteCommand",
    "SearchCommand",
    "CommentCommand",
    "HelpCommand",
    "NoneCommand",
    "EventLookupCommand",
    "GameLookupCommand",
    "ParsedCommand",
]
