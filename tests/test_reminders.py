from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path
from typing import List, Tuple
from zoneinfo import ZoneInfo

from core.models import CreatorContext, NewEvent
from core.outcomes import UpstreamError
from core.reminders import run_reminder_scan
from tools.event_store import EventStore

TAIPEI = ZoneInfo("Asia/Taipei")
NOW = datetime(2025, 6, 19, 18, 0, tzinfo=TAIPEI)
GROUP = CreatorContext("G1", "group")


class StubNotifier:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.pushed: List[Tuple[str, str]] = []

    def push(self, to: str, text: str) -> None:
        if self.fail:
            raise UpstreamError("line", "500")
        self.pushed.append((to, text))


def _seed(store: EventStore, title: str, when: datetime, *, remind_before: int | None = None, creator=GROUP):
    return store.create(
        NewEvent(title=title, location="台北", event_time=when, creator=creator, remind_before_minutes=remind_before)
    )


def test_scan_pushes_due_events_once(tmp_path: Path) -> None:
    store = EventStore(tmp_path / "events.json")
    due = _seed(store, "奪命鎖鏈1", datetime(2025, 6, 20, 16, 0, tzinfo=TAIPEI))
    _seed(store, "太遠", datetime(2025, 6, 25, 16, 0, tzinfo=TAIPEI))
    _seed(store, "短提醒", datetime(2025, 6, 19, 20, 0, tzinfo=TAIPEI), remind_before=60)
    _seed(store, "私訊", datetime(2025, 6, 20, 10, 0, tzinfo=TAIPEI), creator=CreatorContext("U1", "user"))

    notifier = StubNotifier()
    assert run_reminder_scan(store, notifier, now=NOW, tz=TAIPEI) == [due.id]
    assert notifier.pushed[0][0] == "G1"
    assert notifier.pushed[0][1].startswith("⏰ 活動提醒: 「奪命鎖鏈1」\n時間：2025/6/20 16:00")
    assert store.get(due.id).reminded is True

    assert run_reminder_scan(store, notifier, now=NOW + timedelta(minutes=5), tz=TAIPEI) == []
    assert len(notifier.pushed) == 1


def test_failed_push_is_retried_on_next_scan(tmp_path: Path) -> None:
    store = EventStore(tmp_path / "events.json")
    due = _seed(store, "奪命鎖鏈1", NOW + timedelta(hours=2))

    assert run_reminder_scan(store, StubNotifier(fail=True), now=NOW, tz=TAIPEI) == []
    assert store.get(due.id).reminded is False

    assert run_reminder_scan(store, StubNotifier(), now=NOW, tz=TAIPEI) == [due.id]


def test_scan_compares_instants_across_zones(tmp_path: Path) -> None:
    store = EventStore(tmp_path / "events.json")
    due = _seed(store, "奪命鎖鏈1", NOW + timedelta(hours=23))
    utc_now = NOW.astimezone(ZoneInfo("UTC"))
    assert run_reminder_scan(store, StubNotifier(), now=utc_now, tz=TAIPEI) == [due.id]
