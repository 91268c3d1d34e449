from __future__ import annotations

from pathlib import Path

import pytest

from app import config


def test_defaults_when_environment_is_empty():
    env: dict[str, str] = {}
    assert config.get_llm_model(env) == "gpt-4o"
    assert config.get_trigger_word(env) == "小精靈"
    assert config.get_event_timezone(env) == "Asia/Taipei"
    assert config.get_event_store_path(env) == Path("data_pipeline/events.json")
    assert config.get_conflict_window_minutes(env) == 60
    assert config.get_default_reminder_minutes(env) == 1440
    assert config.get_request_timeout(env) == 8.0
    assert config.is_group_only(env) is True
    assert config.is_logging_enabled(env) is True
    assert config.get_turn_log_path(env) == Path("logs/turns.jsonl")
    assert config.get_log_redaction_patterns(env) == ["email", "phone", "url"]
    assert config.get_log_level(env) == "INFO"
    assert config.get_web_port(env) == 3000
    assert config.get_llm_api_key(env) is None
    assert config.get_line_channel_secret(env) is None


def test_overrides_are_read_from_mapping():
    env = {
        "OPENAI_MODEL": "gpt-4o-mini",
        "TRIGGER_WORD": " 密室君 ",
        "EVENT_STORE_PATH": "/tmp/events.json",
        "CONFLICT_WINDOW_MINUTES": "90",
        "GROUP_ONLY": "off",
        "LOG_DIR": "/var/log/escape",
        "LOG_LEVEL": "debug",
        "WEB_PORT": "8080",
        "LINE_CHANNEL_SECRET": "s3cret",
    }
    assert config.get_llm_model(env) == "gpt-4o-mini"
    assert config.get_trigger_word(env) == "密室君"
    assert config.get_event_store_path(env) == Path("/tmp/events.json")
    assert config.get_conflict_window_minutes(env) == 90
    assert config.is_group_only(env) is False
    assert config.get_turn_log_path(env) == Path("/var/log/escape/turns.jsonl")
    assert config.get_log_level(env) == "DEBUG"
    assert config.get_web_port(env) == 8080
    assert config.get_line_channel_secret(env) == "s3cret"


@pytest.mark.parametrize("raw", ["abc", "0", "-5"])
def test_invalid_numbers_fall_back_to_defaults(raw):
    env = {"CONFLICT_WINDOW_MINUTES": raw, "DEFAULT_REMINDER_MINUTES": raw, "REQUEST_TIMEOUT_SECONDS": raw}
    assert config.get_conflict_window_minutes(env) == 60
    assert config.get_default_reminder_minutes(env) == 1440
    assert config.get_request_timeout(env) == 8.0


def test_unrecognized_booleans_keep_defaults():
    assert config.is_group_only({"GROUP_ONLY": "maybe"}) is True
    assert config.is_logging_enabled({"LOGGING_ENABLED": "no"}) is False


def test_out_of_range_port_is_rejected():
    assert config.get_web_port({"WEB_PORT": "70000"}) == 3000
