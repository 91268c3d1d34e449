"""Shared helper utilities for command parsing."""

from .text import is_plain_integer, join_tokens, normalize_text, split_meta, tokenize
from .datetime import (
    current_time,
    format_instant,
    get_event_zone,
    is_date_token,
    is_time_token,
    resolve_datetime,
)

__all__ = [
    "normalize_text",
    "split_meta",
    "tokenize",
    "is_plain_integer",
    "join_tokens",
    "current_time",
    "format_instant",
    "get_event_zone",
    "is_date_token",
    "is_time_token",
    "resolve_datetime",
]
