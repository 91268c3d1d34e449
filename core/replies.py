"""User-facing zh-TW reply text and formatters."""

from __future__ import annotations

from datetime import tzinfo
from typing import Optional, Sequence

from core.disambiguation import format_game_choices
from core.event_matcher import format_event_choices
from core.models import CandidateGame, StoredEvent
from core.parser_utils import format_instant

COMMAND_GUIDE = (
    "🧩 密室逃脫小精靈 使用說明\n\n"
    "📌 新增活動\n小精靈 新增 6/20 16:00 奪命鎖鏈1\n小精靈 新增 6/20 16:00 奪命鎖鏈1 (台北 1)\n\n"
    "📅 查詢未來活動\n小精靈 查詢所有\n\n"
    "🏛️ 查詢歷史活動\n小精靈 查詢歷史\n\n"
    "🔍 查詢單一活動\n小精靈 查詢 奪命鎖鏈1 (6/20 16:00 台北)\n\n"
    "🗑️ 刪除活動\n小精靈 刪除 奪命鎖鏈1 (6/20)\n\n"
    "🧭 找主題\n小精靈 找主題 奪命鎖鏈1 (台北 1)\n\n"
    "💬 看評論\n小精靈 看評論 奪命鎖鏈1\n\n"
    "括號內的日期、時間、地點與編號都可以省略"
)

WELCOME_MESSAGE = "👋 大家好，我是密室逃脫小精靈！\n輸入「小精靈 幫助」查看所有指令"

UNSUPPORTED_COMMAND = "❌ 指令格式錯誤或不支援"
SYSTEM_ERROR = "❌ 系統錯誤，請稍後再試"
UPSTREAM_FAILURE = {
    "catalog": "❌ 搜尋遊戲資訊失敗，請稍後再試",
    "summarizer": "❌ 整理評論失敗，請稍後再試",
    "event_store": "❌ 存取活動資料失敗，請稍後再試",
}
PAST_EVENT = "❌ 活動時間必須是未來時間"
NO_DESCRIPTION = "（無說明）"
DESCRIPTION_UNAVAILABLE = "無法取得遊戲描述"
SCARY_WARNING = "👻👻 恐怖警告 👻👻\n"

_GAME_EXAMPLES = {
    "add": "小精靈 新增 6/20 16:00 {title} (台北 1)",
    "search": "小精靈 找主題 {title} (台北 1)",
    "comment": "小精靈 看評論 {title} (台北 1)",
}
_EVENT_EXAMPLES = {
    "query": "小精靈 查詢 {title} (6/20 16:00 台北)",
    "delete": "小精靈 刪除 {title} (6/20 16:00 台北)",
}


def upstream_failure(source: str) -> str:
    return UPSTREAM_FAILURE.get(source, SYSTEM_ERROR)


# --- Game lookups ------------------------------------------------------------
def game_not_found(title: str) -> str:
    return f"❌ 找不到「{title}」相關的密室主題"


def game_filter_not_found(kind: str, title: str) -> str:
    example = _GAME_EXAMPLES.get(kind, _GAME_EXAMPLES["search"]).format(title=title)
    return f"❌ 找無條件相符的遊戲資訊\n\n範例：\n{example}"


def game_ambiguous(kind: str, title: str, candidates: Sequence[CandidateGame]) -> str:
    example = _GAME_EXAMPLES.get(kind, _GAME_EXAMPLES["search"]).format(title=title)
    return (
        f"⚠️ 搜尋「{title}」找到多個相關密室：\n\n{format_game_choices(candidates)}\n\n"
        f"請使用附加條件（地點和/或編號）再試一次\n{example}"
    )


def game_info(title: str, description: Optional[str], *, scary: bool) -> str:
    warning = SCARY_WARNING if scary else ""
    return f"🧭 主題資訊\n{warning}名稱：{title}\n{description or NO_DESCRIPTION}"


def game_comment(tags: Sequence[str], summary: str) -> str:
    return f"💬 玩家評論\n\n主題標籤：{', '.join(tags)}\n\nAI總結：\n\n{summary}"


# --- Stored events -------------------------------------------------------------
def event_created(event: StoredEvent, *, tz: Optional[tzinfo] = None) -> str:
    when = format_instant(event.event_time, tz=tz)
    return f"✅ 已新增活動：「{event.title}」\n時間：{when}\n{event.description or NO_DESCRIPTION}"


def event_conflict(existing_time, window_minutes: int, *, tz: Optional[tzinfo] = None) -> str:
    when = format_instant(existing_time, with_year=False, tz=tz)
    return f"⚠️ 該時間已有活動（{when} 前後 {window_minutes} 分鐘內），請改期後再新增"


def event_not_found(kind: str, title: str) -> str:
    example = _EVENT_EXAMPLES.get(kind, _EVENT_EXAMPLES["query"]).format(title=title)
    return f"❌ 查無符合條件的活動\n\n範例：\n{example}"


def event_ambiguous(events: Sequence[StoredEvent]) -> str:
    return f"⚠️ 查詢到多筆活動，請提供更完整的時間或地點資訊\n{format_event_choices(events)}"


def event_detail(event: StoredEvent, *, tz: Optional[tzinfo] = None) -> str:
    when = format_instant(event.event_time, tz=tz)
    return f"📌 活動資訊\n名稱：{event.title}\n時間：{when}\n{event.description or NO_DESCRIPTION}"


def event_deleted(event: StoredEvent) -> str:
    return f"🗑️ 已刪除活動：「{event.title}」"


def upcoming_list(events: Sequence[StoredEvent], *, tz: Optional[tzinfo] = None) -> str:
    if not events:
        return "📭 尚無即將舉行的活動"
    lines = [f"📌 {event.title}（{format_instant(event.event_time, with_year=False, tz=tz)} {event.location}）" for event in events]
    return "📅 未來活動列表：\n\n" + "\n".join(lines)


def history_list(events: Sequence[StoredEvent], *, tz: Optional[tzinfo] = None) -> str:
    if not events:
        return "👀 尚無參加過的活動"
    lines = [f"📜 {event.title}（{format_instant(event.event_time, with_year=False, tz=tz)} {event.location}）" for event in events]
    return "🏛️ 歷史活動列表：\n\n" + "\n".join(lines)


def event_reminder(event: StoredEvent, *, tz: Optional[tzinfo] = None) -> str:
    when = format_instant(event.event_time, tz=tz)
    return f"⏰ 活動提醒: 「{event.title}」\n時間：{when}\n{event.description or NO_DESCRIPTION}"


__all__ = [
    "COMMAND_GUIDE",
    "WELCOME_MESSAGE",
    "UNSUPPORTED_COMMAND",
    "SYSTEM_ERROR",
    "PAST_EVENT",
    "DESCRIPTION_UNAVAILABLE",
    "upstream_failure",
    "game_not_found",
    "game_filter_not_found",
    "game_ambiguous",
    "game_info",
    "game_comment",
    "event_created",
    "event_conflict",
    "event_not_found",
    "event_ambiguous",
    "event_detail",
    "event_deleted",
    "upcoming_list",
    "history_list",
    "event_reminder",
]
