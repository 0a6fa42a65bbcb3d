"""
Video rooms — create a Twilio Video room and text the join link.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from switchboard.core.provider import provider_error_info
from switchboard.core.sms_service import SMSService

logger = logging.getLogger("switchboard.video")


async def create_video_room(provider: Any) -> dict[str, str]:
    try:
        room = await provider.create_video_room()
    except Exception as exc:
        logger.error("Error creating video room: %s", provider_error_info(exc))
        raise
    logger.info("Video room created: %s", room.sid)
    return {"sid": room.sid, "name": room.unique_name}


def room_link(base_url: str, room_name: str) -> str:
    return f"{base_url.rstrip('/')}/video-room/{room_name}"


async def send_room_link_to_customer(
    sms_service: SMSService,
    room_name: str,
    customer_phone_number: str,
    base_url: str,
    conversation_sid: Optional[str] = None,
) -> str:
    """Text the join link to the customer. Returns the link."""
    link = room_link(base_url, room_name)
    await sms_service.send_sms(
        customer_phone_number,
        f"Join the video call here: {link}",
        conversation_sid,
        sms_service.from_number,
    )
    logger.info(
        "Video room link sent to=%s conversation=%s link=%s",
        customer_phone_number, conversation_sid, link,
    )
    return link
