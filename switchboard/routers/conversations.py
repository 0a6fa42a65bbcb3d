"""
Conversations API — agent-facing CRUD over Twilio Conversations.

Endpoints:
  GET    /conversations                   List conversations
  GET    /conversations/{sid}             Details + last message + unread count
  GET    /conversations/{sid}/messages    List messages (limit 1-1000, asc|desc)
  POST   /conversations/{sid}/messages    Send a message through the SMS service
  DELETE /conversations/{sid}             Delete (requires confirmToken)
  POST   /conversations/{sid}/mark-read   Mark inbound messages read
"""

from __future__ import annotations

import logging
from typing import Any, Literal, Optional

from fastapi import APIRouter, HTTPException, Query

from switchboard import settings
from switchboard.core.broadcast import notify
from switchboard.core.events import delete_conversation_event, to_iso
from switchboard.core.provider import AttributeParseError, parse_attributes
from switchboard.dependencies import (
    invalidate_cache,
    provider_http_error,
    require_provider,
    require_sms_service,
)
from switchboard.schemas.conversations import (
    CONFIRM_DELETE_TOKEN,
    DeleteConversationRequest,
    SendMessageRequest,
)

logger = logging.getLogger("switchboard.api.conversations")

router = APIRouter(prefix="/conversations", tags=["conversations"])

NO_MESSAGES = "No messages yet"


def _safe_attributes(raw: Any, sid: str) -> dict[str, Any]:
    try:
        return parse_attributes(raw)
    except AttributeParseError as exc:
        logger.error("Error parsing conversation attributes sid=%s: %s", sid, exc)
        return {}


def _is_read(message: Any) -> bool:
    try:
        return bool(parse_attributes(message.attributes).get("read"))
    except AttributeParseError:
        return False


@router.get("")
async def list_conversations():
    provider = require_provider()
    logger.info("Fetching all conversations")
    try:
        conversations = await provider.list_conversations()
    except Exception as exc:
        raise provider_http_error(exc, action="fetch conversations")

    result = []
    for conv in conversations:
        attributes = _safe_attributes(conv.attributes, conv.sid)
        result.append({
            "sid": conv.sid,
            "friendlyName": conv.friendly_name,
            "phoneNumber": attributes.get("phoneNumber", ""),
            "email": attributes.get("email", ""),
            "name": attributes.get("name", ""),
            "lastMessage": NO_MESSAGES,
            "lastMessageTime": None,
            "unreadCount": 0,
        })
    return result


@router.get("/{sid}")
async def get_conversation(sid: str):
    provider = require_provider()
    logger.info("Fetching conversation sid=%s", sid)
    try:
        conversation = await provider.fetch_conversation(sid)
        latest = await provider.list_messages(sid, limit=1, order="desc")
        all_messages = await provider.list_messages(sid, limit=1000, order="asc")
    except Exception as exc:
        raise provider_http_error(exc, sid, action="fetch conversation details")

    unread = [
        m for m in all_messages
        if m.author != settings.TWILIO_PHONE_NUMBER and not _is_read(m)
    ]
    last = latest[0] if latest else None

    return {
        "sid": conversation.sid,
        "friendlyName": conversation.friendly_name,
        "attributes": _safe_attributes(conversation.attributes, sid),
        "lastMessage": last.body if last else NO_MESSAGES,
        "lastMessageTime": to_iso(last.date_created) if last else None,
        "unreadCount": len(unread),
    }


@router.get("/{sid}/messages")
async def list_messages(
    sid: str,
    limit: int = Query(1000, ge=1, le=1000),
    order: Literal["asc", "desc"] = "asc",
):
    provider = require_provider()
    logger.info("Listing messages sid=%s limit=%d order=%s", sid, limit, order)
    try:
        messages = await provider.list_messages(sid, limit=limit, order=order)
    except Exception as exc:
        raise provider_http_error(exc, sid, action="list messages")

    return [
        {
            "sid": m.sid,
            "body": m.body,
            "author": m.author,
            "dateCreated": to_iso(m.date_created),
        }
        for m in messages
    ]


async def _recipient_for(provider: Any, sid: str) -> Optional[str]:
    participants = await provider.list_participants(sid)
    for participant in participants:
        address = (participant.messaging_binding or {}).get("address")
        if address:
            return address
    return None


@router.post("/{sid}/messages", status_code=201)
async def send_message(sid: str, request: SendMessageRequest):
    provider = require_provider()
    sms_service = require_sms_service()
    logger.info("Adding message to conversation sid=%s author=%s", sid, request.author)

    try:
        to = await _recipient_for(provider, sid) or sid
        result = await sms_service.send_sms(to, request.message, sid, request.author)
    except Exception as exc:
        raise provider_http_error(exc, sid, action=f"send message to conversation {sid}")

    if result.duplicate:
        raise HTTPException(status_code=409, detail="Duplicate message suppressed")

    invalidate_cache()
    return {
        "message": "Message sent",
        "sid": result.message_sid,
        "conversationSid": sid,
        "dateCreated": result.date_created,
    }


@router.delete("/{sid}")
async def delete_conversation(sid: str, request: Optional[DeleteConversationRequest] = None):
    if request is None or request.confirmToken != CONFIRM_DELETE_TOKEN:
        raise HTTPException(status_code=400, detail="Invalid or missing confirmation token.")

    provider = require_provider()
    logger.info("Deleting conversation sid=%s", sid)
    try:
        await provider.delete_conversation(sid)
    except Exception as exc:
        raise provider_http_error(exc, sid, action=f"delete conversation {sid}")

    invalidate_cache()
    from switchboard.setup import get_registry
    await notify(delete_conversation_event(sid), registry=get_registry())
    return {"message": f"Conversation {sid} deleted successfully."}


@router.post("/{sid}/mark-read")
async def mark_read(sid: str):
    provider = require_provider()
    try:
        updated = await provider.mark_messages_read(sid, settings.TWILIO_PHONE_NUMBER)
    except Exception as exc:
        raise provider_http_error(exc, sid, action="mark messages read")
    return {"message": "Messages marked as read", "updated": updated}
