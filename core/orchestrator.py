"""Coordinate one chat turn: parse, resolve, act on collaborators, reply.

The orchestrator is the single entry point used by the webhook, the CLI and
the tests. It ignores messages that do not start with the trigger word,
parses the rest into a typed command and dispatches it through the command
registry. Handlers never raise: collaborator failures come back as a generic
retry reply and are logged.
"""

from __future__ import annotations

import logging
import threading
import weakref
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, tzinfo
from time import perf_counter
from typing import Any, Callable, Dict, Optional, Tuple

from core import replies
from core.collaborators import EventRepository, GameCatalog, Summarizer
from core.command_parser import get_trigger_word, is_addressed, parse_command
from core.command_registry import CommandRegistry, HandlerResult
from core.conflicts import DEFAULT_CONFLICT_WINDOW, find_conflict
from core.disambiguation import disambiguate_games
from core.event_matcher import criteria_from_command, match_events, select_history, select_upcoming
from core.locations import location_name_for
from core.models import CandidateGame, CreatorContext, NewEvent
from core.outcomes import Ambiguous, Conflict, NotFound, Resolution, UpstreamError, UpstreamFailure
from core.parser_utils import current_time, get_event_zone
from core.parsers.types import (
    AddCommand,
    CommentCommand,
    EventLookupCommand,
    GameLookupCommand,
    ParsedCommand,
    SearchCommand,
)
from core.turn_logger import TurnLogger, TurnRecord

logger = logging.getLogger(__name__)


@dataclass
class OrchestratorResponse:
    """Structured result for a single orchestrator turn."""

    text: str
    user_text: str
    command: str
    resolution_status: str
    latency_ms: int


class Orchestrator:
    """Runs parsed commands against the store, the catalog and the summarizer."""

    def __init__(
        self,
        store: EventRepository,
        catalog: GameCatalog,
        summarizer: Summarizer,
        *,
        logger: Optional[TurnLogger] = None,
        clock: Optional[Callable[[], datetime]] = None,
        conflict_window: timedelta = DEFAULT_CONFLICT_WINDOW,
        remind_before_minutes: Optional[int] = None,
        trigger: Optional[str] = None,
        tz: Optional[tzinfo] = None,
    ) -> None:
        self._store = store
        self._catalog = catalog
        self._summarizer = summarizer
        self._logger = logger
        self._tz = tz or get_event_zone()
        self._clock = clock or (lambda: current_time(self._tz))
        self._conflict_window = conflict_window
        self._remind_before_minutes = remind_before_minutes
        self._trigger = trigger or get_trigger_word()
        # Entries vanish once no handler holds the creator's lock.
        self._creator_locks: weakref.WeakValueDictionary[Tuple[str, str], threading.Lock] = weakref.WeakValueDictionary()
        self._creator_locks_guard = threading.Lock()
        self._registry = CommandRegistry()
        self._register_handlers()

    def _register_handlers(self) -> None:
        self._registry.register_handler("add", self._handle_add)
        self._registry.register_handler("queryUpcomings", self._handle_query_upcomings)
        self._registry.register_handler("queryHistory", self._handle_query_history)
        self._registry.register_handler("query", self._handle_query)
        self._registry.register_handler("delete", self._handle_delete)
        self._registry.register_handler("search", self._handle_search)
        self._registry.register_handler("comment", self._handle_comment)
        self._registry.register_handler("help", self._handle_help)
        self._registry.register_handler("none", self._handle_none)

    @property
    def trigger(self) -> str:
        return self._trigger

    @property
    def store(self) -> EventRepository:
        return self._store

    # WHAT: answer one inbound chat line on behalf of `creator`.
    # HOW: skip unaddressed text, parse, dispatch, then write one turn record.
    def handle_message(self, text: str, creator: CreatorContext) -> Optional[OrchestratorResponse]:
        if not text or not is_addressed(text, self._trigger):
            return None

        start = perf_counter()
        now = self._clock()
        command = parse_command(text, now=now, tz=self._tz, trigger=self._trigger)
        result = self._dispatch(command, creator)
        latency_ms = int((perf_counter() - start) * 1000)

        response = OrchestratorResponse(
            text=result.text,
            user_text=text,
            command=command.kind,
            resolution_status=result.status,
            latency_ms=latency_ms,
        )
        self._log_turn(response, command, creator)
        return response

    def _dispatch(self, command: ParsedCommand, creator: CreatorContext) -> HandlerResult:
        try:
            return self._registry.run_command(command, creator)
        except UpstreamError as exc:
            failure = UpstreamFailure.from_error(exc)
            logger.error("Upstream failure source=%s detail=%s", failure.source, failure.detail)
            return HandlerResult(replies.upstream_failure(failure.source), failure.status)
        except Exception:
            logger.exception("Unhandled error while running %s", command.kind)
            return HandlerResult(replies.SYSTEM_ERROR, "error")

    def _log_turn(self, response: OrchestratorResponse, command: ParsedCommand, creator: CreatorContext) -> None:
        if not self._logger:
            return
        record = TurnRecord.new(
            creator_id=creator.id,
            creator_kind=creator.kind,
            user_text=response.user_text,
            command=response.command,
            entities=_command_entities(command),
            resolution_status=response.resolution_status,
            response_text=response.text,
            latency_ms=response.latency_ms,
        )
        try:
            self._logger.log_turn(record)
        except OSError as exc:
            logger.warning("Turn log write failed: %s", exc)

    # --- Locks ---------------------------------------------------------------
    def _creator_lock(self, creator: CreatorContext) -> threading.Lock:
        key = (creator.kind, creator.id)
        with self._creator_locks_guard:
            lock = self._creator_locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._creator_locks[key] = lock
            return lock

    # --- Game-backed commands ------------------------------------------------
    def _resolve_game(self, command: GameLookupCommand) -> Tuple[Optional[CandidateGame], Optional[HandlerResult]]:
        candidates = self._catalog.search_games(command.title)
        if not candidates:
            return None, HandlerResult(replies.game_not_found(command.title), "not_found")

        outcome = disambiguate_games(candidates, location=command.location, choice_index=command.choice_index)
        if isinstance(outcome, NotFound):
            return None, HandlerResult(replies.game_filter_not_found(command.kind, command.title), outcome.status)
        if isinstance(outcome, Ambiguous):
            text = replies.game_ambiguous(command.kind, command.title, outcome.options)
            return None, HandlerResult(text, outcome.status)
        return outcome.value, None

    def _handle_add(self, command: AddCommand, creator: CreatorContext) -> HandlerResult:
        now = self._clock()
        if command.event_time <= now:
            return HandlerResult(replies.PAST_EVENT, "rejected")

        game, failure = self._resolve_game(command)
        if failure:
            return failure

        with self._creator_lock(creator):
            existing = self._store.find_by_creator(creator)
            clash = find_conflict(existing, command.event_time, window=self._conflict_window)
            if clash is not None:
                conflict = Conflict(clash.event_time, int(self._conflict_window.total_seconds() // 60))
                text = replies.event_conflict(conflict.existing_time, conflict.window_minutes, tz=self._tz)
                return HandlerResult(text, conflict.status)

            try:
                description = self._catalog.get_description(game.game_id)
            except UpstreamError as exc:
                logger.warning("Description unavailable for game %s: %s", game.game_id, exc)
                description = replies.DESCRIPTION_UNAVAILABLE

            event = self._store.create(
                NewEvent(
                    title=game.title,
                    location=location_name_for(game.venue_id),
                    event_time=command.event_time,
                    creator=creator,
                    description=description,
                    remind_before_minutes=self._remind_before_minutes,
                )
            )
        return HandlerResult(replies.event_created(event, tz=self._tz), details={"event_id": event.id})

    def _handle_search(self, command: SearchCommand, creator: CreatorContext) -> HandlerResult:
        game, failure = self._resolve_game(command)
        if failure:
            return failure
        scary = self._catalog.is_scary(game.game_id)
        description = self._catalog.get_description(game.game_id)
        return HandlerResult(replies.game_info(game.title, description, scary=scary))

    def _handle_comment(self, command: CommentCommand, creator: CreatorContext) -> HandlerResult:
        game, failure = self._resolve_game(command)
        if failure:
            return failure
        tags = self._catalog.get_tags(game.game_id)
        summary = self._summarizer.summarize_reviews(game.game_id)
        return HandlerResult(replies.game_comment(tags, summary))

    # --- Stored-event commands -----------------------------------------------
    def _match(self, command: EventLookupCommand, creator: CreatorContext) -> Resolution:
        criteria = criteria_from_command(command, creator)
        return match_events(criteria, self._store.find_by_creator(creator), tz=self._tz)

    def _handle_query(self, command: EventLookupCommand, creator: CreatorContext) -> HandlerResult:
        outcome = self._match(command, creator)
        if isinstance(outcome, NotFound):
            return HandlerResult(replies.event_not_found(command.kind, command.title), outcome.status)
        if isinstance(outcome, Ambiguous):
            return HandlerResult(replies.event_ambiguous(outcome.options), outcome.status)
        return HandlerResult(replies.event_detail(outcome.value, tz=self._tz))

    def _handle_delete(self, command: EventLookupCommand, creator: CreatorContext) -> HandlerResult:
        with self._creator_lock(creator):
            outcome = self._match(command, creator)
            if isinstance(outcome, NotFound):
                return HandlerResult(replies.event_not_found(command.kind, command.title), outcome.status)
            if isinstance(outcome, Ambiguous):
                return HandlerResult(replies.event_ambiguous(outcome.options), outcome.status)
            event = outcome.value
            if not self._store.delete(event.id):
                return HandlerResult(replies.event_not_found(command.kind, command.title), "not_found")
        return HandlerResult(replies.event_deleted(event), details={"event_id": event.id})

    def _handle_query_upcomings(self, command: ParsedCommand, creator: CreatorContext) -> HandlerResult:
        events = select_upcoming(self._store.find_by_creator(creator), self._clock())
        return HandlerResult(replies.upcoming_list(events, tz=self._tz))

    def _handle_query_history(self, command: ParsedCommand, creator: CreatorContext) -> HandlerResult:
        events = select_history(self._store.find_by_creator(creator), self._clock())
        return HandlerResult(replies.history_list(events, tz=self._tz))

    # --- Fixed replies ---------------------------------------------------------
    def _handle_help(self, command: ParsedCommand, creator: CreatorContext) -> HandlerResult:
        return HandlerResult(replies.COMMAND_GUIDE)

    def _handle_none(self, command: ParsedCommand, creator: CreatorContext) -> HandlerResult:
        return HandlerResult(replies.UNSUPPORTED_COMMAND, "unsupported")


def _command_entities(command: ParsedCommand) -> Dict[str, Any]:
    return {key: value for key, value in asdict(command).items() if value is not None}


__all__ = ["Orchestrator", "OrchestratorResponse"]
