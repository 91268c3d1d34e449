"""Structured JSONL logging of every handled chat turn.

The orchestrator writes one ``TurnRecord`` per addressed message: what the
group typed, which command it parsed to, which resolution the engine reached
and what the sprite replied. Contact details that players paste into a chat
(emails, phone numbers, booking links) are masked before the line reaches
disk, and the file is size-bounded with numbered backups.
"""

from __future__ import annotations

import json
import re
import threading
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Pattern, Tuple

# Applied in this order: a booking link may embed an email or digits.
_CONTACT_PATTERNS: Tuple[Tuple[str, Pattern[str]], ...] = (
    ("url", re.compile(r"https?://\S+", re.IGNORECASE)),
    ("email", re.compile(r"\b[\w.%+-]+@[\w.-]+\.[a-z]{2,}\b", re.IGNORECASE)),
    ("phone", re.compile(r"\+?\d[\d\s\-().]{8,}\d")),
)


@dataclass
class TurnRecord:
    """One orchestrated turn: input, parsed command, resolution and reply."""

    timestamp: str
    creator_id: str
    creator_kind: str
    user_text: str
    command: str
    entities: Dict[str, Any]
    resolution_status: str
    response_text: str = ""
    latency_ms: int | None = None

    @classmethod
    def new(
        cls,
        *,
        creator_id: str,
        creator_kind: str,
        user_text: str,
        command: str,
        entities: Dict[str, Any] | None = None,
        resolution_status: str = "unknown",
        response_text: str = "",
        latency_ms: int | None = None,
    ) -> "TurnRecord":
        return cls(
            timestamp=datetime.now(tz=timezone.utc).isoformat(),
            creator_id=creator_id,
            creator_kind=creator_kind,
            user_text=user_text,
            command=command,
            entities=entities or {},
            resolution_status=resolution_status,
            response_text=response_text,
            latency_ms=latency_ms,
        )


class TurnLogger:
    """Append-only turn log.

    ``patterns`` narrows masking to a subset of ``url``, ``email`` and
    ``phone`` (the ``LOG_REDACTION_PATTERNS`` setting); unknown keys are ignored.
    """

    def __init__(
        self,
        *,
        turn_log_path: Path,
        enabled: bool = True,
        redact: bool = True,
        patterns: Iterable[str] | None = None,
        max_bytes: int = 0,
        backup_count: int = 0,
    ) -> None:
        self._path = turn_log_path
        self._enabled = enabled
        self._max_bytes = max_bytes
        self._backup_count = backup_count
        self._lock = threading.Lock()
        wanted = {key.lower() for key in patterns} if patterns else None
        self._masks: List[Tuple[str, Pattern[str]]] = []
        if redact:
            self._masks = [
                (f"[REDACTED_{name.upper()}]", pattern)
                for name, pattern in _CONTACT_PATTERNS
                if wanted is None or name in wanted
            ]

    @property
    def enabled(self) -> bool:
        return self._enabled

    def log_turn(self, record: TurnRecord) -> None:
        if not self._enabled:
            return
        line = json.dumps(self._masked(record), ensure_ascii=False, default=str) + "\n"
        # Webhook turns run on worker threads; rotate and append as one step.
        with self._lock:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            if self._would_overflow(len(line.encode("utf-8"))):
                self._roll_over()
            with self._path.open("a", encoding="utf-8") as handle:
                handle.write(line)

    # --- Redaction -------------------------------------------------------------
    def _masked(self, record: TurnRecord) -> Dict[str, Any]:
        payload = asdict(record)
        if not self._masks:
            return payload
        payload["user_text"] = self._mask(record.user_text)
        payload["response_text"] = self._mask(record.response_text)
        # Command entities are flat: title, location, event time, index.
        payload["entities"] = {
            key: self._mask(value) if isinstance(value, str) else value
            for key, value in record.entities.items()
        }
        return payload

    def _mask(self, text: str) -> str:
        for token, pattern in self._masks:
            text = pattern.sub(token, text)
        return text

    # --- Rotation --------------------------------------------------------------
    def _would_overflow(self, incoming: int) -> bool:
        if self._max_bytes <= 0 or not self._path.exists():
            return False
        return self._path.stat().st_size + incoming > self._max_bytes

    def _roll_over(self) -> None:
        """Shift ``turns.jsonl.N`` up by one, dropping the oldest; no backups means truncate."""

        if self._backup_count <= 0:
            self._path.unlink()
            return
        backups = [Path(f"{self._path}.{index}") for index in range(1, self._backup_count + 1)]
        backups[-1].unlink(missing_ok=True)
        for older, newer in zip(reversed(backups[1:]), reversed(backups[:-1])):
            if newer.exists():
                newer.replace(older)
        self._path.replace(backups[0])


__all__ = ["TurnRecord", "TurnLogger"]
