import logging

from fastapi import APIRouter

from switchboard import settings
from switchboard.core.video import create_video_room, send_room_link_to_customer
from switchboard.dependencies import (
    provider_http_error,
    require_provider,
    require_sms_service,
)
from switchboard.schemas.conversations import VideoRoomRequest, VideoRoomResponse

logger = logging.getLogger("switchboard.api.video")

router = APIRouter(tags=["video"])


@router.post("/create-room", response_model=VideoRoomResponse)
@router.post("/video/rooms", response_model=VideoRoomResponse)
async def create_room(request: VideoRoomRequest):
    """Create a video room and text its join link to the customer."""
    provider = require_provider()
    sms_service = require_sms_service()

    try:
        room = await create_video_room(provider)
        link = await send_room_link_to_customer(
            sms_service,
            room["name"],
            request.customerPhoneNumber,
            settings.PUBLIC_URL,
            request.conversationSid,
        )
    except Exception as exc:
        raise provider_http_error(exc, request.conversationSid, action="create video room")

    return VideoRoomResponse(roomSid=room["sid"], roomName=room["name"], link=link)
