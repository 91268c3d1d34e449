"""One-shot reminder scan; schedule it externally (cron, platform scheduler)."""

from __future__ import annotations

import logging
from typing import List

from app.config import get_event_timezone, get_line_access_token, get_request_timeout
from app.main import build_store, configure_logging
from core.parser_utils import current_time, get_event_zone
from core.reminders import run_reminder_scan
from tools import LineMessagingClient

logger = logging.getLogger(__name__)


def main() -> List[int]:
    configure_logging()
    zone = get_event_zone(get_event_timezone())
    notifier = LineMessagingClient(get_line_access_token() or "", timeout=get_request_timeout())
    reminded = run_reminder_scan(build_store(), notifier, now=current_time(zone), tz=zone)
    logger.info("Reminder scan finished, %d event(s) reminded", len(reminded))
    return reminded


if __name__ == "__main__":
    main()
