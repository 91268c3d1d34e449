"""FastAPI application receiving LINE webhook deliveries."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, Field, ValidationError
from starlette.concurrency import run_in_threadpool

from app.config import (
    get_line_access_token,
    get_line_channel_secret,
    get_request_timeout,
    is_group_only,
)
from app.main import build_orchestrator, configure_logging
from core import replies
from core.models import CreatorContext
from core.orchestrator import Orchestrator
from core.outcomes import UpstreamError
from tools import LineMessagingClient, verify_signature

logger = logging.getLogger(__name__)

_SIGNATURE_HEADER = "x-line-signature"


# ---------------------------------------------------------------------------
# Webhook payload models
# ---------------------------------------------------------------------------
class EventSource(BaseModel):
    type: str
    userId: Optional[str] = None
    groupId: Optional[str] = None
    roomId: Optional[str] = None


class EventMessage(BaseModel):
    type: str
    text: Optional[str] = None


class WebhookEvent(BaseModel):
    type: str
    replyToken: Optional[str] = None
    source: Optional[EventSource] = None
    message: Optional[EventMessage] = None


class WebhookBody(BaseModel):
    destination: Optional[str] = None
    events: List[WebhookEvent] = Field(default_factory=list)


def creator_for(source: Optional[EventSource]) -> Optional[CreatorContext]:
    """Map a LINE event source to the chat that owns its events."""

    if source is None:
        return None
    if source.type == "group" and source.groupId:
        return CreatorContext(source.groupId, "group")
    if source.type == "room" and source.roomId:
        return CreatorContext(source.roomId, "group")
    if source.type == "user" and source.userId:
        return CreatorContext(source.userId, "user")
    return None


def create_app(
    orchestrator: Optional[Orchestrator] = None,
    *,
    channel_secret: Optional[str] = None,
    messaging_client: Optional[LineMessagingClient] = None,
    group_only: Optional[bool] = None,
) -> FastAPI:
    """Build the webhook app; arguments override the environment for tests."""

    orch = orchestrator or build_orchestrator()
    secret = channel_secret if channel_secret is not None else get_line_channel_secret()
    client = messaging_client or LineMessagingClient(get_line_access_token() or "", timeout=get_request_timeout())

    app = FastAPI(title="Escape Room Assistant", version="1.0.0")
    app.state.orchestrator = orch
    app.state.channel_secret = secret or ""
    app.state.messaging_client = client
    app.state.group_only = is_group_only() if group_only is None else group_only

    def _reply_text(event: WebhookEvent) -> Optional[str]:
        creator = creator_for(event.source)
        if creator is None:
            return None
        if event.type == "join":
            return replies.WELCOME_MESSAGE
        if event.type != "message" or event.message is None or event.message.type != "text":
            return None
        if app.state.group_only and creator.kind != "group":
            return None
        response = app.state.orchestrator.handle_message(event.message.text or "", creator)
        return response.text if response else None

    def _handle_event(event: WebhookEvent) -> bool:
        """Answer one event; returns whether a reply was sent."""

        text = _reply_text(event)
        if text is None or not event.replyToken:
            return False
        app.state.messaging_client.reply(event.replyToken, text)
        return True

    async def _run_event(event: WebhookEvent) -> bool:
        try:
            return await run_in_threadpool(_handle_event, event)
        except UpstreamError as exc:
            logger.error("Reply failed for %s event: %s", event.type, exc)
        except Exception:
            logger.exception("Unhandled error for %s event", event.type)
        return False

    @app.get("/")
    def root() -> Dict[str, Any]:
        return {
            "service": "escape-room-assistant",
            "trigger": app.state.orchestrator.trigger,
            "webhook": "/webhook",
        }

    @app.get("/health")
    def health_check() -> Dict[str, Any]:
        """Uptime probe that also confirms the event store is readable."""

        try:
            app.state.orchestrator.store.find_needing_reminder(datetime.now(tz=timezone.utc))
        except (UpstreamError, ValueError) as exc:
            raise HTTPException(status_code=503, detail=f"Event store unavailable: {exc}") from exc
        return {
            "status": "ok",
            "timestamp": datetime.now(tz=timezone.utc).isoformat(),
        }

    @app.post("/webhook")
    async def webhook(request: Request) -> Dict[str, Any]:
        body = await request.body()
        if not verify_signature(app.state.channel_secret, body, request.headers.get(_SIGNATURE_HEADER)):
            raise HTTPException(status_code=400, detail="Invalid signature.")
        try:
            payload = WebhookBody.model_validate_json(body)
        except ValidationError as exc:
            raise HTTPException(status_code=400, detail="Malformed webhook body.") from exc

        results = await asyncio.gather(*(_run_event(event) for event in payload.events))
        return {"status": "ok", "events": len(payload.events), "replied": sum(1 for sent in results if sent)}

    return app


if __name__ == "__main__":
    import uvicorn
    from app.config import get_web_host, get_web_port

    configure_logging()
    uvicorn.run(
        "app.web_api:create_app",
        factory=True,
        host=get_web_host(),
        port=get_web_port(),
        reload=False,
    )
