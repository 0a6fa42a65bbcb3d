"""
Shared accessors used across routers.

Each ``require_*`` returns the wired singleton or raises 503 when startup
has not built it.
"""

import logging

from fastapi import HTTPException

from switchboard.core.provider import is_not_found, provider_error_info

logger = logging.getLogger("switchboard.api")


def require_provider():
    from switchboard.setup import get_provider
    provider = get_provider()
    if provider is None:
        raise HTTPException(status_code=503, detail="Provider not initialized")
    return provider


def require_cache():
    from switchboard.setup import get_cache
    cache = get_cache()
    if cache is None:
        raise HTTPException(status_code=503, detail="Conversation cache not initialized")
    return cache


def require_sms_service():
    from switchboard.setup import get_sms_service
    sms_service = get_sms_service()
    if sms_service is None:
        raise HTTPException(status_code=503, detail="SMS service not initialized")
    return sms_service


def invalidate_cache() -> None:
    from switchboard.setup import get_cache
    cache = get_cache()
    if cache is not None:
        cache.invalidate()


def provider_http_error(exc: Exception, sid: str | None = None, action: str = "request") -> HTTPException:
    """Map a provider exception onto the HTTP error a route should raise."""
    if sid and is_not_found(exc):
        return HTTPException(status_code=404, detail=f"Conversation {sid} not found.")
    info = provider_error_info(exc)
    logger.error("Provider error during %s (sid=%s): %s", action, sid, info)
    return HTTPException(
        status_code=500,
        detail={"error": f"Failed to {action}", "details": info["message"]},
    )
