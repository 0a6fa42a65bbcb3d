import logging

from fastapi import APIRouter, WebSocket

logger = logging.getLogger("switchboard.api.realtime")

router = APIRouter()


@router.websocket("/ws")
async def realtime_socket(websocket: WebSocket):
    """Server-push channel for conversation and message events."""
    from switchboard.setup import get_broadcaster

    broadcaster = get_broadcaster()
    if broadcaster is None:
        await websocket.close(code=1011, reason="Realtime service unavailable")
        return

    await broadcaster.handle(websocket)
