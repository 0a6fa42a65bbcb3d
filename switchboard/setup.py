"""
Switchboard Setup — builds and wires the core services.

Called once during app startup. Order matters only for the broadcast
registry: the SMS service reads it at send time, so it can be built before
the realtime layer installs its broadcast function.
"""

from __future__ import annotations

import logging

from switchboard import settings
from switchboard.core.broadcast import BroadcastRegistry, default_registry
from switchboard.core.cache import CacheRefresher, ConversationCache
from switchboard.core.provider import TwilioProvider
from switchboard.core.sms_service import SMSService
from switchboard.realtime.broadcaster import (
    NoopBroadcaster,
    RealtimeBroadcaster,
    setup_realtime,
)

logger = logging.getLogger("switchboard.setup")

# Module-level singletons (set during initialize)
_provider: TwilioProvider | None = None
_cache: ConversationCache | None = None
_refresher: CacheRefresher | None = None
_sms_service: SMSService | None = None
_broadcaster: RealtimeBroadcaster | NoopBroadcaster | None = None
_registry: BroadcastRegistry = default_registry


async def initialize(testing: bool | None = None) -> None:
    """Wire provider, cache, SMS service and broadcaster; start the refresher."""
    global _provider, _cache, _refresher, _sms_service, _broadcaster

    if testing is None:
        testing = settings.is_testing()

    logger.info("Initializing Switchboard core (testing=%s)...", testing)

    _provider = TwilioProvider(
        account_sid=settings.TWILIO_ACCOUNT_SID,
        auth_token=settings.TWILIO_AUTH_TOKEN,
        proxy_address=settings.TWILIO_PHONE_NUMBER,
    )
    _cache = ConversationCache(_provider, cache_ttl=settings.CACHE_TTL_SECONDS)
    _sms_service = SMSService(
        _provider,
        from_number=settings.TWILIO_PHONE_NUMBER,
        registry=_registry,
        dedup_window=settings.DEDUP_WINDOW_SECONDS,
    )
    _broadcaster = setup_realtime(_registry, testing=testing)

    _refresher = CacheRefresher(_cache)
    if not testing:
        await _refresher.start()

    logger.info("Switchboard core initialized")


async def shutdown() -> None:
    """Stop background tasks."""
    if _refresher:
        await _refresher.stop()
    logger.info("Switchboard shutdown complete")


def get_provider() -> TwilioProvider | None:
    return _provider


def get_cache() -> ConversationCache | None:
    return _cache


def get_refresher() -> CacheRefresher | None:
    return _refresher


def get_sms_service() -> SMSService | None:
    return _sms_service


def get_broadcaster() -> RealtimeBroadcaster | NoopBroadcaster | None:
    return _broadcaster


def get_registry() -> BroadcastRegistry:
    return _registry
