"""Periodic reminder scan for upcoming group outings."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, tzinfo
from typing import List, Optional

from core import replies
from core.collaborators import EventRepository, Notifier
from core.outcomes import UpstreamError

logger = logging.getLogger(__name__)


def run_reminder_scan(
    store: EventRepository,
    notifier: Notifier,
    *,
    now: datetime,
    tz: Optional[tzinfo] = None,
) -> List[int]:
    """Push one reminder per due event and return the ids that were reminded.

    An event is due once it starts within its ``remind_before_minutes``. A
    failed push leaves the event unmarked so the next scan retries it.
    """

    reminded: List[int] = []
    for event in store.find_needing_reminder(now):
        remaining = event.event_time - now
        if remaining <= timedelta(0) or remaining > timedelta(minutes=event.remind_before_minutes):
            continue
        try:
            notifier.push(event.creator_id, replies.event_reminder(event, tz=tz))
        except UpstreamError as exc:
            logger.error("Reminder push failed event=%s: %s", event.id, exc)
            continue
        store.mark_reminded(event.id)
        reminded.append(event.id)
        logger.info("Reminder sent event=%s to=%s", event.id, event.creator_id)
    return reminded


__all__ = ["run_reminder_scan"]
