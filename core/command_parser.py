"""Command parser that turns a chat line into a typed command.

The grammar is a fixed, ordered rule table: the first rule whose keyword
matches claims the message. Exact rules accept nothing after the keyword.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Callable, Optional, Tuple

from core.parser_utils import normalize_text
from core.parsers.events import build_add, build_delete, build_query
from core.parsers.games import build_comment, build_search
from core.parsers.types import (
    HelpCommand,
    NoneCommand,
    ParsedCommand,
    QueryHistoryCommand,
    QueryUpcomingsCommand,
)

logger = logging.getLogger(__name__)

DEFAULT_TRIGGER_WORD = "小精靈"

Builder = Callable[..., ParsedCommand]


@dataclass(frozen=True)
class CommandRule:
    """One grammar row: ``<trigger> <keyword> [body]``."""

    name: str
    keyword: str
    build: Builder
    exact: bool = False


def _exact(command: ParsedCommand) -> Builder:
    return lambda body, **_: command


# Order matters: first match wins.
COMMAND_RULES: Tuple[CommandRule, ...] = (
    CommandRule("add", "新增", build_add),
    CommandRule("queryUpcomings", "查詢所有", _exact(QueryUpcomingsCommand()), exact=True),
    CommandRule("queryHistory", "查詢歷史", _exact(QueryHistoryCommand()), exact=True),
    CommandRule("query", "查詢", build_query),
    CommandRule("delete", "刪除", build_delete),
    CommandRule("search", "找主題", build_search),
    CommandRule("comment", "看評論", build_comment),
    CommandRule("help", "幫助", _exact(HelpCommand()), exact=True),
)


def get_trigger_word() -> str:
    return os.getenv("TRIGGER_WORD", "").strip() or DEFAULT_TRIGGER_WORD


def is_addressed(message: str, trigger: Optional[str] = None) -> bool:
    """True when ``message`` starts with the wake word."""

    return normalize_text(message).startswith(trigger or get_trigger_word())


def parse_command(
    message: str,
    *,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
    trigger: Optional[str] = None,
) -> ParsedCommand:
    """Classify ``message`` into exactly one command variant.

    Never raises: malformed input, including date tokens that name an
    impossible day, comes back as ``NoneCommand``.
    """
    text = normalize_text(message)
    if not text:
        return NoneCommand(reason="empty")

    parts = text.split(None, 2)
    if len(parts) < 2 or parts[0] != (trigger or get_trigger_word()):
        return NoneCommand(reason="not_addressed")
    keyword = parts[1]
    body = parts[2] if len(parts) > 2 else None

    for rule in COMMAND_RULES:
        if keyword != rule.keyword:
            continue
        if rule.exact:
            if body:
                break
            return rule.build(body)
        if not body:
            break
        return rule.build(body, now=now, tz=tz)

    logger.info("Unknown command %r", text)
    return NoneCommand(reason="unknown_command")


__all__ = [
    "COMMAND_RULES",
    "CommandRule",
    "DEFAULT_TRIGGER_WORD",
    "get_trigger_word",
    "is_addressed",
    "parse_command",
    "ParsedCommand",
]
