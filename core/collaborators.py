"""Narrow interfaces the engine expects from its external collaborators.

Concrete implementations live in ``tools/``; tests pass in-memory fakes.
All of them report failures by raising ``core.outcomes.UpstreamError``.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Protocol

from core.models import CandidateGame, CreatorContext, NewEvent, Review, StoredEvent


class GameCatalog(Protocol):
    def search_games(self, title: str) -> List[CandidateGame]:
        ...

    def get_description(self, game_id: str) -> str:
        ...

    def get_tags(self, game_id: str) -> List[str]:
        ...

    def is_scary(self, game_id: str) -> bool:
        ...

    def get_reviews(self, game_id: str) -> List[Review]:
        ...


class EventRepository(Protocol):
    def create(self, data: NewEvent) -> StoredEvent:
        ...

    def find_by_creator(self, creator: CreatorContext) -> List[StoredEvent]:
        ...

    def find_upcoming(self, creator: CreatorContext, now: datetime) -> List[StoredEvent]:
        ...

    def find_history(self, creator: CreatorContext, now: datetime) -> List[StoredEvent]:
        ...

    def find_needing_reminder(self, now: datetime) -> List[StoredEvent]:
        ...

    def mark_reminded(self, event_id: int) -> bool:
        ...

    def delete(self, event_id: int) -> bool:
        ...


class Summarizer(Protocol):
    def summarize_reviews(self, game_id: str) -> str:
        ...


class Notifier(Protocol):
    def push(self, to: str, text: str) -> None:
        ...


__all__ = ["GameCatalog", "EventRepository", "Summarizer", "Notifier"]
