"""Minimal LINE Messaging API client used for replies, pushes and webhook checks."""

from __future__ import annotations

import base64
import hashlib
import hmac
import logging
from typing import Any, Dict, Optional

import requests

from core.outcomes import UpstreamError

logger = logging.getLogger(__name__)

LINE_API_BASE = "https://api.line.me/v2/bot/message"
_MAX_TEXT_LENGTH = 5000


def verify_signature(channel_secret: str, body: bytes, signature: Optional[str]) -> bool:
    """Check ``X-Line-Signature``: base64(HMAC-SHA256(secret, raw body))."""

    if not channel_secret or not signature:
        return False
    digest = hmac.new(channel_secret.encode("utf-8"), body, hashlib.sha256).digest()
    expected = base64.b64encode(digest).decode("ascii")
    return hmac.compare_digest(expected, signature.strip())


class LineMessagingClient:
    def __init__(
        self,
        access_token: str,
        *,
        timeout: float = 8,
        api_base: str = LINE_API_BASE,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._access_token = access_token
        self._timeout = timeout
        self._api_base = api_base.rstrip("/")
        self._session = session or requests.Session()

    def reply(self, reply_token: str, text: str) -> None:
        self._post("reply", {"replyToken": reply_token, "messages": [_text_message(text)]})

    def push(self, to: str, text: str) -> None:
        self._post("push", {"to": to, "messages": [_text_message(text)]})

    def _post(self, endpoint: str, payload: Dict[str, Any]) -> None:
        if not self._access_token:
            raise UpstreamError("line", "LINE_CHANNEL_ACCESS_TOKEN is not configured.")
        url = f"{self._api_base}/{endpoint}"
        try:
            response = self._session.post(
                url,
                json=payload,
                headers={"Authorization": f"Bearer {self._access_token}"},
                timeout=self._timeout,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.error("LINE %s failed: %s", endpoint, exc)
            raise UpstreamError("line", f"{endpoint} failed: {exc}") from exc


def _text_message(text: str) -> Dict[str, str]:
    return {"type": "text", "text": text[:_MAX_TEXT_LENGTH]}


__all__ = ["LineMessagingClient", "verify_signature", "LINE_API_BASE"]
