"""Common text-processing helpers shared across command parsers."""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

_FULL_WIDTH_PARENS = str.maketrans({"（": "(", "）": ")"})
_TRAILING_META_PATTERN = re.compile(r"^(?P<head>[^()]*?)\s+\((?P<meta>[^()]*)\)$")
_INTEGER_PATTERN = re.compile(r"^\d+$")


def normalize_text(raw: str) -> str:
    """Swap full-width parentheses for half-width ones and trim the ends."""

    return (raw or "").translate(_FULL_WIDTH_PARENS).strip()


def split_meta(body: str) -> Tuple[Optional[str], Optional[str]]:
    """Split ``"<head> (<meta>)"`` into its parts.

    Returns ``(head, None)`` when there is no trailing group and ``(None, None)``
    when a parenthesis shows up anywhere other than a trailing group.
    """
    if "(" not in body and ")" not in body:
        return body, None
    match = _TRAILING_META_PATTERN.match(body)
    if not match:
        return None, None
    return match.group("head"), match.group("meta")


def tokenize(text: Optional[str]) -> List[str]:
    return (text or "").split()


def is_plain_integer(token: str) -> bool:
    """True for plain decimal strings, "0" included; signs, decimals and full-width digits don't count."""

    return bool(_INTEGER_PATTERN.match(token)) and token.isascii()


def join_tokens(tokens: List[str]) -> Optional[str]:
    return " ".join(tokens) or None


__all__ = ["normalize_text", "split_meta", "tokenize", "is_plain_integer", "join_tokens"]
