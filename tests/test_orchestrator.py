"""End-to-end command handling with an in-memory catalog and the JSON store."""

from __future__ import annotations

import gc
import json
import re
import threading
from datetime import datetime, timedelta
from pathlib import Path
from typing import Dict, List, get_args
from zoneinfo import ZoneInfo

import pytest

from core import replies
from core.models import CandidateGame, CreatorContext, NewEvent, Review
from core.orchestrator import Orchestrator
from core.outcomes import UpstreamError
from core.parsers.types import ParsedCommand
from core.turn_logger import TurnLogger
from tools.event_store import EventStore

TAIPEI = ZoneInfo("Asia/Taipei")
NOW = datetime(2025, 6, 1, 12, 0, tzinfo=TAIPEI)
GROUP = CreatorContext("G1", "group")


class StubCatalog:
    def __init__(self, games: List[CandidateGame], tags: Dict[str, List[str]] | None = None) -> None:
        self.games = games
        self.tags = tags or {}
        self.fail_search = False
        self.fail_description = False
        self.searches: List[str] = []
        self.scary_checks: List[str] = []

    def search_games(self, title: str) -> List[CandidateGame]:
        self.searches.append(title)
        if self.fail_search:
            raise UpstreamError("catalog", "timeout")
        return list(self.games)

    def get_description(self, game_id: str) -> str:
        if self.fail_description:
            raise UpstreamError("catalog", "timeout")
        return f"description of {game_id}"

    def get_tags(self, game_id: str) -> List[str]:
        return self.tags.get(game_id, [])

    def is_scary(self, game_id: str) -> bool:
        self.scary_checks.append(game_id)
        return "恐怖驚悚" in self.get_tags(game_id)

    def get_reviews(self, game_id: str) -> List[Review]:
        return [Review(rating=4.5, comment="好玩", feedback_weight=3)]


class StubSummarizer:
    def __init__(self) -> None:
        self.fail = False

    def summarize_reviews(self, game_id: str) -> str:
        if self.fail:
            raise UpstreamError("summarizer", "quota")
        return f"4.2/5 summary for {game_id}"


def _build(tmp_path: Path, games: List[CandidateGame], **kwargs) -> tuple[Orchestrator, EventStore, StubCatalog]:
    store = EventStore(tmp_path / "events.json", clock=lambda: NOW)
    catalog = StubCatalog(games, kwargs.pop("tags", None))
    orchestrator = Orchestrator(
        store,
        catalog,
        kwargs.pop("summarizer", StubSummarizer()),
        clock=lambda: NOW,
        trigger="小精靈",
        tz=TAIPEI,
        **kwargs,
    )
    return orchestrator, store, catalog


def test_unaddressed_messages_are_ignored(tmp_path: Path) -> None:
    orchestrator, _, catalog = _build(tmp_path, [])
    assert orchestrator.handle_message("今天要去玩密室嗎", GROUP) is None
    assert orchestrator.handle_message("", GROUP) is None
    assert catalog.searches == []


def test_add_with_two_catalog_candidates_is_ambiguous_and_creates_nothing(tmp_path: Path) -> None:
    games = [CandidateGame("奪命鎖鏈1", "101", "g1"), CandidateGame("奪命鎖鏈1", "102", "g2")]
    orchestrator, store, _ = _build(tmp_path, games)

    response = orchestrator.handle_message("小精靈 新增 6/20 16:00 奪命鎖鏈1 台北", GROUP)

    assert response.command == "add"
    assert response.resolution_status == "ambiguous"
    assert "1. 奪命鎖鏈1\n2. 奪命鎖鏈1" in response.text
    assert store.find_by_creator(GROUP) == []


def test_add_single_candidate_creates_then_conflicts(tmp_path: Path) -> None:
    orchestrator, store, _ = _build(tmp_path, [CandidateGame("奪命鎖鏈1", "101", "g1")])

    created = orchestrator.handle_message("小精靈 新增 6/20 16:00 奪命鎖鏈1 台北", GROUP)
    assert created.resolution_status == "resolved"
    assert created.text.startswith("✅ 已新增活動：「奪命鎖鏈1」\n時間：2025/6/20 16:00")

    events = store.find_by_creator(GROUP)
    assert len(events) == 1
    assert events[0].title == "奪命鎖鏈1"
    assert events[0].location == "台北"
    assert events[0].description == "description of g1"

    again = orchestrator.handle_message("小精靈 新增 6/20 16:30 奪命鎖鏈1 台北", GROUP)
    assert again.resolution_status == "conflict"
    assert "6/20 16:00 前後 60 分鐘內" in again.text
    assert len(store.find_by_creator(GROUP)) == 1


def test_conflicts_are_scoped_per_creator(tmp_path: Path) -> None:
    orchestrator, store, _ = _build(tmp_path, [CandidateGame("奪命鎖鏈1", "101", "g1")])
    orchestrator.handle_message("小精靈 新增 6/20 16:00 奪命鎖鏈1", GROUP)
    other = CreatorContext("G2", "group")
    response = orchestrator.handle_message("小精靈 新增 6/20 16:00 奪命鎖鏈1", other)
    assert response.resolution_status == "resolved"
    assert len(store.find_by_creator(other)) == 1


def test_add_in_the_past_is_rejected_before_catalog_lookup(tmp_path: Path) -> None:
    orchestrator, _, catalog = _build(tmp_path, [CandidateGame("奪命鎖鏈1", "101", "g1")])
    response = orchestrator.handle_message("小精靈 新增 5/1 16:00 奪命鎖鏈1", GROUP)
    assert response.text == replies.PAST_EVENT
    assert catalog.searches == []


def test_add_with_location_and_index_picks_within_location(tmp_path: Path) -> None:
    games = [
        CandidateGame("奪命鎖鏈1", "101", "g1"),
        CandidateGame("奪命鎖鏈1", "101", "g2"),
        CandidateGame("奪命鎖鏈1", "102", "g3"),
    ]
    orchestrator, store, _ = _build(tmp_path, games)
    response = orchestrator.handle_message("小精靈 新增 6/20 16:00 奪命鎖鏈1 (台北 2)", GROUP)
    assert response.resolution_status == "resolved"
    assert store.find_by_creator(GROUP)[0].description == "description of g2"


def test_add_unknown_location_reports_filter_miss(tmp_path: Path) -> None:
    games = [CandidateGame("奪命鎖鏈1", "101", "g1"), CandidateGame("奪命鎖鏈1", "102", "g2")]
    orchestrator, _, _ = _build(tmp_path, games)
    response = orchestrator.handle_message("小精靈 新增 6/20 16:00 奪命鎖鏈1 (火星)", GROUP)
    assert response.resolution_status == "not_found"
    assert response.text.startswith("❌ 找無條件相符的遊戲資訊")


def test_add_keeps_going_when_description_fails(tmp_path: Path) -> None:
    orchestrator, store, catalog = _build(tmp_path, [CandidateGame("奪命鎖鏈1", "101", "g1")])
    catalog.fail_description = True
    response = orchestrator.handle_message("小精靈 新增 6/20 16:00 奪命鎖鏈1", GROUP)
    assert response.resolution_status == "resolved"
    assert store.find_by_creator(GROUP)[0].description == replies.DESCRIPTION_UNAVAILABLE


def test_concurrent_conflicting_adds_create_one_event(tmp_path: Path) -> None:
    orchestrator, store, _ = _build(tmp_path, [CandidateGame("奪命鎖鏈1", "101", "g1")])
    results: List[str] = []

    def _add(when: str) -> None:
        response = orchestrator.handle_message(f"小精靈 新增 6/20 {when} 奪命鎖鏈1", GROUP)
        results.append(response.resolution_status)

    threads = [threading.Thread(target=_add, args=(when,)) for when in ("16:00", "16:10", "16:20", "16:30")]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(results) == ["conflict", "conflict", "conflict", "resolved"]
    assert len(store.find_by_creator(GROUP)) == 1


def _seed(store: EventStore, title: str, when: datetime, location: str = "台北", creator: CreatorContext = GROUP):
    return store.create(NewEvent(title=title, location=location, event_time=when, creator=creator, description="desc"))


def test_query_upcomings_and_history(tmp_path: Path) -> None:
    orchestrator, store, _ = _build(tmp_path, [])
    _seed(store, "未來", datetime(2025, 6, 20, 16, 0, tzinfo=TAIPEI))
    _seed(store, "過去", datetime(2025, 5, 20, 9, 5, tzinfo=TAIPEI), "新北")

    upcoming = orchestrator.handle_message("小精靈 查詢所有", GROUP)
    assert upcoming.text == "📅 未來活動列表：\n\n📌 未來（6/20 16:00 台北）"

    history = orchestrator.handle_message("小精靈 查詢歷史", GROUP)
    assert history.text == "🏛️ 歷史活動列表：\n\n📜 過去（5/20 09:05 新北）"

    empty = orchestrator.handle_message("小精靈 查詢所有", CreatorContext("nobody", "group"))
    assert empty.text == "📭 尚無即將舉行的活動"


def test_query_single_event_by_date(tmp_path: Path) -> None:
    orchestrator, store, _ = _build(tmp_path, [])
    _seed(store, "奪命鎖鏈1", datetime(2025, 6, 20, 16, 0, tzinfo=TAIPEI))
    _seed(store, "奪命鎖鏈1", datetime(2025, 7, 20, 16, 0, tzinfo=TAIPEI))

    ambiguous = orchestrator.handle_message("小精靈 查詢 奪命鎖鏈1", GROUP)
    assert ambiguous.resolution_status == "ambiguous"
    assert "1. 奪命鎖鏈1\n2. 奪命鎖鏈1" in ambiguous.text

    found = orchestrator.handle_message("小精靈 查詢 奪命鎖鏈1 (7/20)", GROUP)
    assert found.resolution_status == "resolved"
    assert "時間：2025/7/20 16:00" in found.text

    missing = orchestrator.handle_message("小精靈 查詢 奪命鎖鏈1 (8/1)", GROUP)
    assert missing.resolution_status == "not_found"
    assert "小精靈 查詢 奪命鎖鏈1" in missing.text


def test_delete_removes_only_the_matched_event(tmp_path: Path) -> None:
    orchestrator, store, _ = _build(tmp_path, [])
    _seed(store, "奪命鎖鏈1", datetime(2025, 6, 20, 16, 0, tzinfo=TAIPEI), "台北")
    kept = _seed(store, "奪命鎖鏈1", datetime(2025, 6, 21, 16, 0, tzinfo=TAIPEI), "新北")

    response = orchestrator.handle_message("小精靈 刪除 奪命鎖鏈1 (台北)", GROUP)
    assert response.text == "🗑️ 已刪除活動：「奪命鎖鏈1」"
    assert [event.id for event in store.find_by_creator(GROUP)] == [kept.id]


def test_search_shows_horror_warning(tmp_path: Path) -> None:
    games = [CandidateGame("鬼屋", "101", "g1")]
    orchestrator, _, catalog = _build(tmp_path, games, tags={"g1": ["恐怖驚悚", "劇情"]})
    response = orchestrator.handle_message("小精靈 找主題 鬼屋", GROUP)
    assert response.text == "🧭 主題資訊\n👻👻 恐怖警告 👻👻\n名稱：鬼屋\ndescription of g1"
    assert catalog.scary_checks == ["g1"]


def test_search_without_results(tmp_path: Path) -> None:
    orchestrator, _, _ = _build(tmp_path, [])
    response = orchestrator.handle_message("小精靈 找主題 不存在", GROUP)
    assert response.text == "❌ 找不到「不存在」相關的密室主題"


def test_comment_combines_tags_and_summary(tmp_path: Path) -> None:
    orchestrator, _, _ = _build(tmp_path, [CandidateGame("奪命鎖鏈1", "101", "g1")], tags={"g1": ["機關", "解謎"]})
    response = orchestrator.handle_message("小精靈 看評論 奪命鎖鏈1", GROUP)
    assert response.text == "💬 玩家評論\n\n主題標籤：機關, 解謎\n\nAI總結：\n\n4.2/5 summary for g1"


@pytest.mark.parametrize(
    "message,source",
    [("小精靈 找主題 奪命鎖鏈1", "catalog"), ("小精靈 看評論 奪命鎖鏈1", "summarizer")],
)
def test_upstream_failures_render_retry_message(tmp_path: Path, message: str, source: str) -> None:
    summarizer = StubSummarizer()
    summarizer.fail = True
    orchestrator, _, catalog = _build(tmp_path, [CandidateGame("奪命鎖鏈1", "101", "g1")], summarizer=summarizer)
    catalog.fail_search = source == "catalog"

    response = orchestrator.handle_message(message, GROUP)
    assert response.resolution_status == "upstream_failure"
    assert response.text == replies.upstream_failure(source)


def test_help_exact_and_near_miss(tmp_path: Path) -> None:
    orchestrator, _, _ = _build(tmp_path, [])
    assert orchestrator.handle_message("小精靈 幫助", GROUP).text == replies.COMMAND_GUIDE
    near_miss = orchestrator.handle_message("小精靈 幫助 一下", GROUP)
    assert near_miss.command == "none"
    assert near_miss.text == replies.UNSUPPORTED_COMMAND


def test_turns_are_logged(tmp_path: Path) -> None:
    log_path = tmp_path / "logs" / "turns.jsonl"
    turn_logger = TurnLogger(turn_log_path=log_path)
    orchestrator, _, _ = _build(tmp_path, [], logger=turn_logger)

    orchestrator.handle_message("小精靈 查詢 奪命鎖鏈1 (6/20 16:00)", GROUP)
    orchestrator.handle_message("不是指令", GROUP)

    lines = log_path.read_text(encoding="utf-8").strip().splitlines()
    assert len(lines) == 1
    record = json.loads(lines[0])
    assert record["command"] == "query"
    assert record["creator_id"] == "G1"
    assert record["resolution_status"] == "not_found"
    assert record["entities"]["title"] == "奪命鎖鏈1"
    assert record["entities"]["event_time"].startswith("2025-06-20 16:00")


def test_query_by_outlying_island_name_finds_event_stored_under_shared_venue(tmp_path: Path) -> None:
    games = [CandidateGame("島嶼密室", "500", "g1"), CandidateGame("島嶼密室", "101", "g2")]
    orchestrator, store, _ = _build(tmp_path, games)

    created = orchestrator.handle_message("小精靈 新增 6/20 16:00 島嶼密室 (金門)", GROUP)
    assert created.resolution_status == "resolved"
    assert store.find_by_creator(GROUP)[0].location == "澎湖"

    queried = orchestrator.handle_message("小精靈 查詢 島嶼密室 (金門)", GROUP)
    assert queried.resolution_status == "resolved"


def test_zero_index_reprompts_with_the_numbered_list(tmp_path: Path) -> None:
    games = [CandidateGame("奪命鎖鏈1", "101", "g1"), CandidateGame("奪命鎖鏈1", "101", "g2")]
    orchestrator, store, _ = _build(tmp_path, games)

    response = orchestrator.handle_message("小精靈 新增 6/20 16:00 奪命鎖鏈1 (台北 0)", GROUP)

    assert response.resolution_status == "ambiguous"
    assert "1. 奪命鎖鏈1\n2. 奪命鎖鏈1" in response.text
    assert store.find_by_creator(GROUP) == []


def test_core_modules_do_not_import_concrete_collaborators() -> None:
    core_dir = Path(__file__).resolve().parents[1] / "core"
    pattern = re.compile(r"^\s*(from|import)\s+tools\b", re.MULTILINE)
    offenders = [path.name for path in core_dir.rglob("*.py") if pattern.search(path.read_text(encoding="utf-8"))]
    assert offenders == []


def test_every_command_kind_has_a_handler(tmp_path: Path) -> None:
    orchestrator, _, _ = _build(tmp_path, [])
    kinds = {command_cls.kind for command_cls in get_args(ParsedCommand)}
    assert kinds == set(orchestrator._registry.available_handlers())


def test_creator_locks_are_released_after_the_turn(tmp_path: Path) -> None:
    orchestrator, _, _ = _build(tmp_path, [CandidateGame("奪命鎖鏈1", "101", "g1")])
    orchestrator.handle_message("小精靈 新增 6/20 16:00 奪命鎖鏈1", GROUP)
    orchestrator.handle_message("小精靈 刪除 奪命鎖鏈1", GROUP)
    gc.collect()
    assert len(orchestrator._creator_locks) == 0
