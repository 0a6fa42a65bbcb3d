import logging

from fastapi import APIRouter, HTTPException

from switchboard import settings
from switchboard.core.provider import AttributeParseError, parse_attributes
from switchboard.dependencies import provider_http_error, require_provider

logger = logging.getLogger("switchboard.api.call_params")

router = APIRouter(tags=["voice"])


@router.get("/call-params/{sid}")
async def call_params(sid: str):
    """From/To numbers for placing a voice call to the conversation's customer."""
    provider = require_provider()
    try:
        conversation = await provider.fetch_conversation(sid)
    except Exception as exc:
        raise provider_http_error(exc, sid, action="fetch call parameters")

    try:
        attributes = parse_attributes(conversation.attributes)
    except AttributeParseError as exc:
        logger.error("Error parsing conversation attributes sid=%s: %s", sid, exc)
        attributes = {}

    to_number = attributes.get("phoneNumber")
    if not to_number:
        logger.warning("No phone number associated with conversation %s", sid)
        raise HTTPException(
            status_code=400,
            detail="No phone number associated with this conversation.",
        )

    return {"From": settings.TWILIO_PHONE_NUMBER, "To": to_number}
