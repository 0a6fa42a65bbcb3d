"""
Start Conversation API — POST /start-conversation

Creates a conversation for a customer phone number, binds the customer as
an SMS participant, and sends the opening message (with opt-out
disclaimer) through the SMS service so browsers see it immediately.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, HTTPException

from switchboard.core.provider import (
    AttributeParseError,
    parse_attributes,
    provider_error_info,
)
from switchboard.dependencies import (
    invalidate_cache,
    provider_http_error,
    require_provider,
    require_sms_service,
)
from switchboard.schemas.conversations import (
    OPT_OUT_DISCLAIMER,
    StartConversationRequest,
    StartConversationResponse,
)

logger = logging.getLogger("switchboard.api.start_conversation")

router = APIRouter(tags=["conversations"])

BINDING_EXISTS = "A binding for this participant and proxy address already exists"


async def find_conversation_by_phone(provider: Any, phone_number: str) -> Optional[Any]:
    """First conversation whose attributes carry this phone number."""
    for conv in await provider.list_conversations():
        try:
            attributes = parse_attributes(conv.attributes)
        except AttributeParseError:
            continue
        if attributes.get("phoneNumber") == phone_number:
            return conv
    return None


@router.post("/start-conversation", response_model=StartConversationResponse)
async def start_conversation(request: StartConversationRequest):
    provider = require_provider()
    sms_service = require_sms_service()
    phone = request.phoneNumber

    logger.info("Starting new conversation phone=%s name=%s", phone, request.name)

    try:
        existing = await find_conversation_by_phone(provider, phone)
    except Exception as exc:
        raise provider_http_error(exc, action="start a new conversation")
    if existing is not None:
        logger.info("Existing conversation found sid=%s", existing.sid)
        return StartConversationResponse(sid=existing.sid, existing=True)

    attributes = {
        "email": request.email,
        "name": request.name,
        "phoneNumber": phone,
        "dob": request.dob,
        "state": request.state,
    }
    friendly_name = request.name or f"Conversation with {phone}"

    try:
        conversation = await provider.create_conversation(friendly_name, attributes)
    except Exception as exc:
        raise provider_http_error(exc, action="start a new conversation")
    logger.info("New conversation created sid=%s friendly_name=%s", conversation.sid, friendly_name)

    try:
        await provider.add_participant(conversation.sid, phone)
    except Exception as exc:
        if BINDING_EXISTS in str(exc):
            logger.warning(
                "Binding already exists for %s; removing new conversation %s",
                phone, conversation.sid,
            )
            try:
                await provider.delete_conversation(conversation.sid)
            except Exception as cleanup_exc:
                logger.error(
                    "Failed to remove conversation %s after binding conflict: %s",
                    conversation.sid, provider_error_info(cleanup_exc),
                )
            raise HTTPException(
                status_code=409,
                detail=f"A conversation with {phone} already exists",
            )
        raise provider_http_error(exc, conversation.sid, action="add participant")

    first_message = f"{request.message} {OPT_OUT_DISCLAIMER}"
    try:
        result = await sms_service.send_sms(
            phone, first_message, conversation.sid, sms_service.from_number
        )
    except Exception as exc:
        raise provider_http_error(exc, conversation.sid, action="send first message")

    invalidate_cache()
    logger.info(
        "First SMS sent for new conversation sid=%s message_sid=%s",
        conversation.sid, result.message_sid,
    )
    return StartConversationResponse(
        sid=conversation.sid, existing=False, messageSid=result.message_sid
    )
