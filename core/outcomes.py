"""Discriminated results returned by the resolvers and the command handlers.

Nothing in the engine raises past its own boundary. Parsers and resolvers
return one of the dataclasses below; collaborators raise ``UpstreamError``
which the orchestrator turns into ``UpstreamFailure``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, Optional, Sequence, Tuple, TypeVar, Union

T = TypeVar("T")


class UpstreamError(Exception):
    """Raised by a collaborator (catalog, store, summarizer, messaging) that failed."""

    def __init__(self, source: str, detail: str) -> None:
        super().__init__(f"{source}: {detail}")
        self.source = source
        self.detail = detail


@dataclass(frozen=True)
class Resolved(Generic[T]):
    value: T
    status: str = field(default="resolved", init=False)


@dataclass(frozen=True)
class NotFound:
    reason: str = "no_match"
    status: str = field(default="not_found", init=False)


@dataclass(frozen=True)
class Ambiguous(Generic[T]):
    """Two or more matches.

    ``options`` is what gets numbered back to the user; ``matches`` is the
    subset still in contention after the qualifiers were applied.
    """

    options: Tuple[T, ...]
    matches: Tuple[T, ...] = ()
    status: str = field(default="ambiguous", init=False)

    @classmethod
    def of(cls, options: Sequence[T], matches: Optional[Sequence[T]] = None) -> "Ambiguous[T]":
        return cls(tuple(options), tuple(options if matches is None else matches))


@dataclass(frozen=True)
class Conflict:
    existing_time: datetime
    window_minutes: int
    status: str = field(default="conflict", init=False)


@dataclass(frozen=True)
class UpstreamFailure:
    source: str
    detail: str = ""
    status: str = field(default="upstream_failure", init=False)

    @classmethod
    def from_error(cls, error: UpstreamError) -> "UpstreamFailure":
        return cls(source=error.source, detail=error.detail)


@dataclass(frozen=True)
class ParseFailure:
    raw: str
    reason: str
    status: str = field(default="parse_failure", init=False)


Resolution = Union[Resolved[T], NotFound, Ambiguous[T]]


__all__ = [
    "UpstreamError",
    "Resolved",
    "NotFound",
    "Ambiguous",
    "Conflict",
    "UpstreamFailure",
    "ParseFailure",
    "Resolution",
]
