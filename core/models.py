"""Shared records passed between the parser, the resolvers and collaborators."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, Optional

CREATOR_KINDS = ("user", "group")


@dataclass(frozen=True)
class CreatorContext:
    """Who issued a command: a single user or a group chat."""

    id: str
    kind: str = "group"

    def __post_init__(self) -> None:
        if self.kind not in CREATOR_KINDS:
            raise ValueError(f"Unknown creator kind '{self.kind}'")


@dataclass(frozen=True)
class CandidateGame:
    """A catalog record returned for a searched title."""

    title: str
    venue_id: str
    game_id: str


@dataclass(frozen=True)
class Review:
    rating: float
    comment: str
    feedback_weight: int = 0


@dataclass(frozen=True)
class NewEvent:
    """Payload handed to the store when an outing is created."""

    title: str
    location: str
    event_time: datetime
    creator: CreatorContext
    description: Optional[str] = None
    remind_before_minutes: Optional[int] = None


@dataclass(frozen=True)
class StoredEvent:
    """Persisted outing. Copies only; the store owns the canonical row."""

    id: int
    title: str
    location: str
    event_time: datetime
    remind_before_minutes: int
    reminded: bool
    created_at: datetime
    creator_id: str
    creator_kind: str
    description: Optional[str] = None

    @property
    def creator(self) -> CreatorContext:
        return CreatorContext(self.creator_id, self.creator_kind)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["event_time"] = self.event_time.isoformat()
        data["created_at"] = self.created_at.isoformat()
        return {key: value for key, value in data.items() if value is not None}


__all__ = ["CREATOR_KINDS", "CreatorContext", "CandidateGame", "Review", "NewEvent", "StoredEvent"]
