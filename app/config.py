"""Centralize defaults and environment lookups for the assistant."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, List

from dotenv import load_dotenv

load_dotenv()

# ---------------------------------------------------------------------------
# Default configuration values
# ---------------------------------------------------------------------------
_DEFAULT_LLM_MODEL: str = "gpt-4o"
_DEFAULT_TRIGGER_WORD = "小精靈"
_DEFAULT_EVENT_TIMEZONE = "Asia/Taipei"
_DEFAULT_EVENT_STORE_PATH = "data_pipeline/events.json"
_DEFAULT_CONFLICT_WINDOW_MINUTES = 60
_DEFAULT_REMINDER_MINUTES = 60 * 24
_DEFAULT_ESCAPE_BAR_BASE_URL = "https://escape.bar"
_DEFAULT_ESCAPE_BAR_REVIEWS_URL = "https://bartender.escape.bar/review/get-by-game"
_DEFAULT_REQUEST_TIMEOUT_SECONDS = 8.0
_DEFAULT_GROUP_ONLY: bool = True
_DEFAULT_LOGGING_ENABLED: bool = True
_DEFAULT_LOG_REDACTION_ENABLED: bool = True
_DEFAULT_LOG_DIR = "logs"
_TURN_LOG_FILENAME = "turns.jsonl"
_DEFAULT_LOG_REDACTION_PATTERNS = "email,phone,url"
_DEFAULT_LOG_MAX_BYTES = 1_000_000
_DEFAULT_LOG_BACKUP_COUNT = 5
_DEFAULT_LOG_LEVEL = "INFO"
_DEFAULT_WEB_HOST = "0.0.0.0"
_DEFAULT_WEB_PORT = 3000

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _source(env: Dict[str, str] | None) -> Dict[str, str]:
    return env if env is not None else os.environ  # type: ignore[return-value]


def _read_bool(env: Dict[str, str] | None, key: str, default: bool) -> bool:
    raw = _source(env).get(key)
    if raw is None:
        return default
    normalized = raw.strip().lower()
    if normalized in _FALSE_VALUES:
        return False
    if normalized in _TRUE_VALUES:
        return True
    return default


def _read_int(env: Dict[str, str] | None, key: str, default: int, *, minimum: int = 0) -> int:
    raw = _source(env).get(key)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value >= minimum else default


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------
def get_line_access_token(env: Dict[str, str] | None = None) -> str | None:
    return _source(env).get("LINE_CHANNEL_ACCESS_TOKEN")


def get_line_channel_secret(env: Dict[str, str] | None = None) -> str | None:
    return _source(env).get("LINE_CHANNEL_SECRET")


def get_llm_api_key(env: Dict[str, str] | None = None) -> str | None:
    """Return the API key for the review summarizer.

    Args:
        env: Optional mapping used instead of ``os.environ`` to simplify testing.

    Returns:
        The API key string if present, otherwise ``None``.
    """

    return _source(env).get("OPENAI_API_KEY")


def get_llm_model(env: Dict[str, str] | None = None) -> str:
    """Return the model identifier used for review summaries."""

    return _source(env).get("OPENAI_MODEL") or _DEFAULT_LLM_MODEL


# ---------------------------------------------------------------------------
# Command engine
# ---------------------------------------------------------------------------
def get_trigger_word(env: Dict[str, str] | None = None) -> str:
    """Return the wake word every addressed message must start with."""

    return (_source(env).get("TRIGGER_WORD") or "").strip() or _DEFAULT_TRIGGER_WORD


def get_event_timezone(env: Dict[str, str] | None = None) -> str:
    return (_source(env).get("EVENT_TIMEZONE") or "").strip() or _DEFAULT_EVENT_TIMEZONE


def get_event_store_path(env: Dict[str, str] | None = None) -> Path:
    override = _source(env).get("EVENT_STORE_PATH")
    return Path(override) if override else Path(_DEFAULT_EVENT_STORE_PATH)


def get_conflict_window_minutes(env: Dict[str, str] | None = None) -> int:
    return _read_int(env, "CONFLICT_WINDOW_MINUTES", _DEFAULT_CONFLICT_WINDOW_MINUTES, minimum=1)


def get_default_reminder_minutes(env: Dict[str, str] | None = None) -> int:
    return _read_int(env, "DEFAULT_REMINDER_MINUTES", _DEFAULT_REMINDER_MINUTES, minimum=1)


def is_group_only(env: Dict[str, str] | None = None) -> bool:
    """Whether the webhook should ignore commands sent from 1:1 chats."""

    return _read_bool(env, "GROUP_ONLY", _DEFAULT_GROUP_ONLY)


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------
def get_escape_bar_base_url(env: Dict[str, str] | None = None) -> str:
    return _source(env).get("ESCAPE_BAR_BASE_URL") or _DEFAULT_ESCAPE_BAR_BASE_URL


def get_escape_bar_reviews_url(env: Dict[str, str] | None = None) -> str:
    return _source(env).get("ESCAPE_BAR_REVIEWS_URL") or _DEFAULT_ESCAPE_BAR_REVIEWS_URL


def get_request_timeout(env: Dict[str, str] | None = None) -> float:
    raw = _source(env).get("REQUEST_TIMEOUT_SECONDS")
    if raw is None:
        return _DEFAULT_REQUEST_TIMEOUT_SECONDS
    try:
        value = float(raw)
    except ValueError:
        return _DEFAULT_REQUEST_TIMEOUT_SECONDS
    return value if value > 0 else _DEFAULT_REQUEST_TIMEOUT_SECONDS


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
def is_logging_enabled(env: Dict[str, str] | None = None) -> bool:
    """Determine whether turn logging is active."""

    return _read_bool(env, "LOGGING_ENABLED", _DEFAULT_LOGGING_ENABLED)


def get_log_dir(env: Dict[str, str] | None = None) -> Path:
    override = _source(env).get("LOG_DIR")
    return Path(override) if override else Path(_DEFAULT_LOG_DIR)


def get_turn_log_path(env: Dict[str, str] | None = None) -> Path:
    """Return the full path for the turn log JSONL file."""

    return get_log_dir(env) / _TURN_LOG_FILENAME


def is_log_redaction_enabled(env: Dict[str, str] | None = None) -> bool:
    return _read_bool(env, "LOG_REDACTION_ENABLED", _DEFAULT_LOG_REDACTION_ENABLED)


def get_log_redaction_patterns(env: Dict[str, str] | None = None) -> List[str]:
    """Return the list of redaction pattern keys to apply."""

    raw = _source(env).get("LOG_REDACTION_PATTERNS")
    values = raw if raw is not None else _DEFAULT_LOG_REDACTION_PATTERNS
    return [segment.strip().lower() for segment in values.split(",") if segment.strip()]


def get_log_max_bytes(env: Dict[str, str] | None = None) -> int:
    """Return the maximum size in bytes before rotating log files."""

    return _read_int(env, "LOG_MAX_BYTES", _DEFAULT_LOG_MAX_BYTES)


def get_log_backup_count(env: Dict[str, str] | None = None) -> int:
    return _read_int(env, "LOG_BACKUP_COUNT", _DEFAULT_LOG_BACKUP_COUNT)


def get_log_level(env: Dict[str, str] | None = None) -> str:
    return (_source(env).get("LOG_LEVEL") or _DEFAULT_LOG_LEVEL).strip().upper()


# ---------------------------------------------------------------------------
# Web server
# ---------------------------------------------------------------------------
def get_web_host(env: Dict[str, str] | None = None) -> str:
    return _source(env).get("WEB_HOST", _DEFAULT_WEB_HOST)


def get_web_port(env: Dict[str, str] | None = None) -> int:
    raw = _source(env).get("WEB_PORT") or _source(env).get("PORT")
    if raw is None:
        return _DEFAULT_WEB_PORT
    try:
        value = int(raw)
    except ValueError:
        return _DEFAULT_WEB_PORT
    return value if 0 < value <= 65535 else _DEFAULT_WEB_PORT
