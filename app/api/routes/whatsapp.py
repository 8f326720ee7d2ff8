# app/api/routes/whatsapp.py
"""
WhatsApp Cloud API webhook: the inbound side of the messaging gateway.

Each text message in the payload becomes one ``InboundMessage`` for the
conversation controller.  Non-text messages (images, reactions, status
callbacks) are acknowledged and ignored.
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from app.api.deps import get_controller
from app.core.config import settings
from app.domain.services.conversation_service import (
    ConversationController,
    InboundMessage,
)
from app.infrastructure.cache.session_cache import SessionPersistenceError

logger = logging.getLogger("api.whatsapp")

router = APIRouter()

DEFAULT_SENDER_NAME = "User"


def sender_display_name(*candidates: Any) -> str:
    """First non-blank candidate, else ``"User"``."""
    for name in candidates:
        if isinstance(name, str) and name.strip():
            return name.strip()
    return DEFAULT_SENDER_NAME


def parse_inbound_messages(body: Dict[str, Any]) -> List[InboundMessage]:
    """Flatten a webhook body into inbound text messages."""
    inbound: List[InboundMessage] = []
    for entry in body.get("entry") or []:
        for change in entry.get("changes") or []:
            value = change.get("value") or {}
            contacts = {
                c.get("wa_id"): c for c in (value.get("contacts") or []) if isinstance(c, dict)
            }
            for message in value.get("messages") or []:
                if message.get("type", "text") != "text":
                    continue
                wa_id = message.get("from")
                if not wa_id:
                    continue
                contact = contacts.get(wa_id) or {}
                profile = contact.get("profile") or {}
                inbound.append(InboundMessage(
                    conversation_id=wa_id,
                    text=(message.get("text") or {}).get("body", ""),
                    sender_name=sender_display_name(
                        profile.get("name"),
                        profile.get("formatted_name"),
                        message.get("notify_name"),
                    ),
                    is_group=bool(message.get("group_id")),
                    message_id=message.get("id") or "",
                ))
    return inbound


@router.get("/webhook", response_class=PlainTextResponse)
async def verify(request: Request):
    params = request.query_params
    if (
        params.get("hub.mode") == "subscribe"
        and settings.WHATSAPP_VERIFY_TOKEN
        and params.get("hub.verify_token") == settings.WHATSAPP_VERIFY_TOKEN
    ):
        return params.get("hub.challenge", "")
    return PlainTextResponse("Verification failed", status_code=403)


@router.post("/webhook")
async def webhook(
    request: Request,
    controller: ConversationController = Depends(get_controller),
):
    body = await request.json()

    for message in parse_inbound_messages(body):
        try:
            await controller.handle_message(message)
        except SessionPersistenceError:
            # Non-2xx makes Meta redeliver the batch; messages already handled
            # carry their id in the saved session and are skipped next time
            logger.exception("Session save failed for %s", message.conversation_id)
            return JSONResponse({"status": "error"}, status_code=500)

    return {"status": "ok"}
