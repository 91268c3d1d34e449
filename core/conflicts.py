"""Reject a new outing that starts too close to one the creator already has."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable, Optional

from core.models import StoredEvent

DEFAULT_CONFLICT_WINDOW = timedelta(minutes=60)


def find_conflict(
    existing: Iterable[StoredEvent],
    new_time: datetime,
    *,
    window: timedelta = DEFAULT_CONFLICT_WINDOW,
) -> Optional[StoredEvent]:
    """Return the first event strictly closer than ``window`` to ``new_time``.

    Events exactly ``window`` apart do not conflict.
    """
    for event in existing:
        if abs(event.event_time - new_time) < window:
            return event
    return None


__all__ = ["DEFAULT_CONFLICT_WINDOW", "find_conflict"]
