from fastapi import APIRouter

from switchboard import settings

router = APIRouter(tags=["config"])


@router.get("/config")
async def get_config():
    """Numbers and public URL the browser client needs at startup."""
    return {
        "TWILIO_PHONE_NUMBER": settings.TWILIO_PHONE_NUMBER,
        "NGROK_URL": settings.PUBLIC_URL,
    }
