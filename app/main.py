"""Assemble the orchestrator and run the interactive CLI loop."""

from __future__ import annotations

import logging
from datetime import timedelta

from app.config import (
    get_conflict_window_minutes,
    get_default_reminder_minutes,
    get_escape_bar_base_url,
    get_escape_bar_reviews_url,
    get_event_store_path,
    get_event_timezone,
    get_llm_api_key,
    get_llm_model,
    get_log_backup_count,
    get_log_level,
    get_log_max_bytes,
    get_log_redaction_patterns,
    get_request_timeout,
    get_trigger_word,
    get_turn_log_path,
    is_log_redaction_enabled,
    is_logging_enabled,
)
from core.models import CreatorContext
from core.orchestrator import Orchestrator
from core.parser_utils import get_event_zone
from core.review_summarizer import ReviewSummarizer
from core.turn_logger import TurnLogger
from tools import EscapeBarCatalog, EventStore

_CLI_CREATOR = CreatorContext(id="cli", kind="user")


def configure_logging() -> None:
    """Route module loggers to stderr at ``LOG_LEVEL``."""

    logging.basicConfig(
        level=getattr(logging, get_log_level(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_catalog() -> EscapeBarCatalog:
    return EscapeBarCatalog(
        get_escape_bar_base_url(),
        get_escape_bar_reviews_url(),
        timeout=get_request_timeout(),
    )


def build_store() -> EventStore:
    return EventStore(get_event_store_path(), default_remind_before=get_default_reminder_minutes())


# -- Orchestrator construction -------------------------------------------------
def build_orchestrator() -> Orchestrator:
    """Wire store, catalog, summarizer and turn logger for CLI and the webhook.

    Every entry point shares this wiring so behavior stays identical across
    environments; runtime settings come from ``app.config``.
    """
    catalog = build_catalog()
    summarizer = ReviewSummarizer(model=get_llm_model(), api_key=get_llm_api_key(), catalog=catalog)

    turn_logger = TurnLogger(
        turn_log_path=get_turn_log_path(),
        enabled=is_logging_enabled(),
        redact=is_log_redaction_enabled(),
        patterns=get_log_redaction_patterns(),
        max_bytes=get_log_max_bytes(),
        backup_count=get_log_backup_count(),
    )

    return Orchestrator(
        build_store(),
        catalog,
        summarizer,
        logger=turn_logger,
        conflict_window=timedelta(minutes=get_conflict_window_minutes()),
        remind_before_minutes=get_default_reminder_minutes(),
        trigger=get_trigger_word(),
        tz=get_event_zone(get_event_timezone()),
    )


# -- Interactive CLI loop ------------------------------------------------------
def main() -> None:
    """Minimal CLI driver that proxies stdin to the orchestrator.

    Every line is handled as the same single-user chat, so stored events
    persist across runs in the configured store.
    """
    configure_logging()
    orchestrator = build_orchestrator()
    print(f"Escape-room assistant ready. Start messages with '{orchestrator.trigger}'. Type 'quit' or 'exit' to stop.")

    while True:
        try:
            message = input("You: ")
        except (EOFError, KeyboardInterrupt):
            print("\nExiting.")
            break

        if message.strip().lower() in {"quit", "exit"}:
            print("Goodbye!")
            break

        response = orchestrator.handle_message(message, _CLI_CREATOR)
        if response is None:
            continue
        print()
        print(f"Assistant: {response.text}")
        print()


if __name__ == "__main__":
    main()
