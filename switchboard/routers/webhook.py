"""
Twilio Conversations webhook — POST /twilio-webhook

Twilio posts one request per conversation event (form-encoded; JSON is
accepted too). Inbound customer messages are pushed to browsers as
``newMessage`` plus an ``updateConversation`` preview; removed
conversations as ``deleteConversation``. Messages we authored ourselves are
skipped: the SMS service already broadcast them when they were sent.

Expected body (onMessageAdded):
{
  "EventType": "onMessageAdded",
  "ConversationSid": "CH...",
  "MessageSid": "IM...",
  "Author": "+447700900001",
  "Body": "Message text",
  "DateCreated": "2026-01-01T12:00:00Z"
}
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Request

from switchboard import settings
from switchboard.core.broadcast import notify
from switchboard.core.events import (
    delete_conversation_event,
    new_message_event,
    update_conversation_event,
)
from switchboard.core.provider import parse_attributes, provider_error_info
from switchboard.dependencies import invalidate_cache

logger = logging.getLogger("switchboard.api.webhook")

router = APIRouter(tags=["webhooks"])

MESSAGE_ADDED = "onMessageAdded"
CONVERSATION_REMOVED = "onConversationRemoved"
CONVERSATION_UPDATED = ("onConversationAdded", "onConversationUpdated")


async def _read_body(request: Request) -> Any:
    if request.headers.get("content-type", "").startswith("application/json"):
        return await request.json()
    form = await request.form()
    return dict(form)


async def _push_conversation_preview(
    conversation_sid: str, last_message: str, last_message_time: Any
) -> None:
    from switchboard.setup import get_provider, get_registry

    provider = get_provider()
    if provider is None:
        return
    try:
        conversation = await provider.fetch_conversation(conversation_sid)
        attributes = parse_attributes(conversation.attributes)
    except Exception as exc:
        logger.error(
            "Error fetching conversation %s for preview: %s",
            conversation_sid, provider_error_info(exc),
        )
        return

    await notify(
        update_conversation_event(
            conversation_sid=conversation.sid,
            friendly_name=conversation.friendly_name,
            last_message=last_message,
            last_message_time=last_message_time,
            attributes=attributes,
        ),
        registry=get_registry(),
    )


@router.post("/twilio-webhook")
async def twilio_webhook(request: Request):
    from switchboard.setup import get_registry

    body = await _read_body(request)
    if not isinstance(body, dict):
        logger.warning("Twilio webhook body is not an object: %r", type(body).__name__)
        return {"success": False, "reason": "malformed body"}

    event_type = body.get("EventType", "")
    conversation_sid = body.get("ConversationSid", "")
    logger.info("Twilio webhook event=%s conversation=%s", event_type, conversation_sid)

    if not conversation_sid:
        return {"success": False, "reason": "missing ConversationSid"}

    if event_type == MESSAGE_ADDED:
        author = body.get("Author", "")
        if author == settings.TWILIO_PHONE_NUMBER:
            return {"success": True, "skipped": "own message"}

        text = body.get("Body", "")
        date_created = body.get("DateCreated")
        invalidate_cache()
        await notify(
            new_message_event(
                conversation_sid=conversation_sid,
                message_sid=body.get("MessageSid"),
                author=author,
                body=text,
                date_created=date_created,
            ),
            registry=get_registry(),
        )
        await _push_conversation_preview(conversation_sid, text, date_created)

    elif event_type == CONVERSATION_REMOVED:
        invalidate_cache()
        await notify(delete_conversation_event(conversation_sid), registry=get_registry())

    elif event_type in CONVERSATION_UPDATED:
        invalidate_cache()

    else:
        logger.debug("Ignoring webhook event %s", event_type)

    return {"success": True}
