import os
from fastapi import APIRouter

router = APIRouter()


@router.get("/")
async def root():
    return {
        "status": "Switchboard is Running",
        "endpoints": {
            "conversations": "/conversations",
            "search": "/search?query=",
            "start_conversation": "/start-conversation",
            "call_params": "/call-params/{sid}",
            "config": "/config",
            "create_room": "/create-room",
            "twilio_webhook": "/twilio-webhook",
            "realtime_ws": "/ws",
        },
    }


@router.get("/health")
async def health_check():
    """Health check endpoint"""
    from switchboard.setup import get_broadcaster, get_cache

    cache = get_cache()
    broadcaster = get_broadcaster()
    return {
        "status": "healthy",
        "service": "switchboard",
        "port": os.environ.get("PORT", 8080),
        "cached_conversations": cache.size if cache else 0,
        "connections": broadcaster.connection_count if broadcaster else 0,
    }
