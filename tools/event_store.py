"""File-backed persistence for scheduled escape-room outings."""

from __future__ import annotations

import json
import logging
import os
import threading
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from core.event_matcher import select_history, select_upcoming
from core.models import CreatorContext, NewEvent, StoredEvent
from core.outcomes import UpstreamError

logger = logging.getLogger(__name__)

_DEFAULT_STORAGE_PATH = Path("data_pipeline/events.json")
DEFAULT_REMINDER_MINUTES = 60 * 24


class EventStore:
    """Persist outings as a JSON document of ``{"next_id": int, "events": [...]}``.

    Every read-modify-write runs under one lock so concurrent handlers in
    the same process never interleave file writes.
    """

    def __init__(
        self,
        storage_path: Path | None = None,
        *,
        default_remind_before: int = DEFAULT_REMINDER_MINUTES,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._storage_path = storage_path or _DEFAULT_STORAGE_PATH
        self._default_remind_before = default_remind_before
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._lock = threading.RLock()

    @property
    def storage_path(self) -> Path:
        return self._storage_path

    # --- Writes ------------------------------------------------------------
    def create(self, data: NewEvent) -> StoredEvent:
        with self._lock:
            next_id, events = self._load()
            event = StoredEvent(
                id=next_id,
                title=data.title,
                description=data.description or None,
                location=data.location,
                event_time=data.event_time,
                remind_before_minutes=data.remind_before_minutes or self._default_remind_before,
                reminded=False,
                created_at=self._clock(),
                creator_id=data.creator.id,
                creator_kind=data.creator.kind,
            )
            events.append(event)
            self._write(next_id + 1, events)
        logger.info("Event created id=%s title=%s", event.id, event.title)
        return event

    def mark_reminded(self, event_id: int) -> bool:
        with self._lock:
            next_id, events = self._load()
            for idx, event in enumerate(events):
                if event.id != event_id:
                    continue
                if event.reminded:
                    return True
                events[idx] = replace(event, reminded=True)
                self._write(next_id, events)
                return True
        return False

    def delete(self, event_id: int) -> bool:
        with self._lock:
            next_id, events = self._load()
            remaining = [event for event in events if event.id != event_id]
            if len(remaining) == len(events):
                return False
            self._write(next_id, remaining)
        logger.info("Event deleted id=%s", event_id)
        return True

    # --- Reads -------------------------------------------------------------
    def find_by_creator(self, creator: CreatorContext) -> List[StoredEvent]:
        events = [
            event
            for event in self._read_events()
            if event.creator_id == creator.id and event.creator_kind == creator.kind
        ]
        events.sort(key=lambda event: event.event_time)
        return events

    def find_upcoming(self, creator: CreatorContext, now: datetime) -> List[StoredEvent]:
        return select_upcoming(self.find_by_creator(creator), now)

    def find_history(self, creator: CreatorContext, now: datetime) -> List[StoredEvent]:
        return select_history(self.find_by_creator(creator), now)

    def find_needing_reminder(self, now: datetime) -> List[StoredEvent]:
        """Group outings that still lie ahead and have not been reminded."""

        return [
            event
            for event in self._read_events()
            if not event.reminded and event.creator_kind == "group" and event.event_time > now
        ]

    def get(self, event_id: int) -> Optional[StoredEvent]:
        for event in self._read_events():
            if event.id == event_id:
                return event
        return None

    def _read_events(self) -> List[StoredEvent]:
        with self._lock:
            _, events = self._load()
        return events

    # --- Serialization -------------------------------------------------------
    def _load(self) -> tuple[int, List[StoredEvent]]:
        payload = self._read_document()
        if not isinstance(payload, dict):
            raise ValueError("Invalid event store format: expected a JSON object")
        raw = payload.get("events", [])
        if not isinstance(raw, list):
            raise ValueError("Invalid event store format: 'events' must be a list")

        events: List[StoredEvent] = []
        for item in raw:
            if not isinstance(item, dict):
                continue
            event = _event_from_dict(item)
            if event is not None:
                events.append(event)

        highest = max((event.id for event in events), default=0)
        try:
            next_id = int(payload.get("next_id", highest + 1))
        except (TypeError, ValueError):
            next_id = highest + 1
        return max(next_id, highest + 1), events

    def _write(self, next_id: int, events: List[StoredEvent]) -> None:
        payload = {"next_id": next_id, "events": [event.to_dict() for event in events]}
        # Swap in a fully written sibling so a crash never truncates the store.
        tmp_path = self._storage_path.with_suffix(self._storage_path.suffix + ".tmp")
        try:
            self._storage_path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp_path, self._storage_path)
        except OSError as exc:
            raise UpstreamError("event_store", f"Could not write {self._storage_path}: {exc}") from exc

    def _read_document(self) -> Any:
        """Raw JSON document; a missing or blank file is an empty store."""

        try:
            raw = self._storage_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {"next_id": 1, "events": []}
        except OSError as exc:
            raise UpstreamError("event_store", f"Unreadable store {self._storage_path}: {exc}") from exc
        if not raw.strip():
            return {"next_id": 1, "events": []}
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise UpstreamError("event_store", f"Corrupt store {self._storage_path}: {exc}") from exc


def _event_from_dict(item: Dict[str, Any]) -> Optional[StoredEvent]:
    try:
        event_id = int(item["id"])
        event_time = datetime.fromisoformat(str(item["event_time"]))
        created_raw = str(item.get("created_at", "")).strip()
        created_at = datetime.fromisoformat(created_raw) if created_raw else event_time
        remind_before = int(item.get("remind_before_minutes", DEFAULT_REMINDER_MINUTES))
    except (KeyError, TypeError, ValueError):
        return None
    creator_kind = str(item.get("creator_kind", "")).strip()
    creator_id = str(item.get("creator_id", "")).strip()
    if not creator_id or creator_kind not in {"user", "group"} or event_time.tzinfo is None:
        return None
    return StoredEvent(
        id=event_id,
        title=str(item.get("title", "")).strip(),
        description=str(item.get("description", "")).strip() or None,
        location=str(item.get("location", "")).strip(),
        event_time=event_time,
        remind_before_minutes=remind_before,
        reminded=bool(item.get("reminded", False)),
        created_at=created_at,
        creator_id=creator_id,
        creator_kind=creator_kind,
    )


__all__ = ["EventStore", "DEFAULT_REMINDER_MINUTES"]
