"""
Conversation Cache — read-through snapshot of every Twilio conversation.

Each refresh pulls the conversation list, then (concurrently, per
conversation) the participant list and newest message, and folds them into
ConversationSummary rows. A refresh either replaces the whole snapshot or
leaves it exactly as it was.

Refreshes are gated by a TTL: calls inside the window are no-ops. A failed
refresh does not advance the clock, so the next call retries straight away.
Two overlapping calls may both refresh; there is no lock.

Usage:
    cache = ConversationCache(provider)
    await cache.update_cache()
    cache.search_conversations("smith")

    refresher = CacheRefresher(cache)
    await refresher.start()
    ...
    await refresher.stop()
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, Optional

from switchboard.core.models import ConversationSummary
from switchboard.core.provider import parse_attributes, provider_error_info
from switchboard.core.search import search_conversations

logger = logging.getLogger("switchboard.cache")

CACHE_TTL = 60.0  # seconds


class ConversationCache:
    """TTL-gated snapshot of conversation summaries."""

    def __init__(
        self,
        provider: Any,
        cache_ttl: float = CACHE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._provider = provider
        self._cache_ttl = cache_ttl
        self._clock = clock
        self._entries: tuple[ConversationSummary, ...] = ()
        self._last_cache_update: Optional[float] = None

    @property
    def entries(self) -> tuple[ConversationSummary, ...]:
        return self._entries

    @property
    def last_cache_update(self) -> Optional[float]:
        """Clock reading of the last successful refresh (None before the first)."""
        return self._last_cache_update

    @property
    def cache_ttl(self) -> float:
        return self._cache_ttl

    @property
    def size(self) -> int:
        return len(self._entries)

    def is_fresh(self) -> bool:
        if self._last_cache_update is None:
            return False
        return self._clock() - self._last_cache_update <= self._cache_ttl

    def invalidate(self) -> None:
        """Force the next update_cache() call to hit the provider."""
        self._last_cache_update = None

    async def update_cache(self) -> bool:
        """
        Refresh the snapshot if the TTL has elapsed.

        Returns True if a refresh happened, False if it was skipped.
        Provider and parse errors are logged and re-raised; the snapshot
        and timestamp stay untouched in that case.
        """
        if self.is_fresh():
            return False

        now = self._clock()
        logger.info("Updating conversation cache")
        try:
            conversations = await self._provider.list_conversations()
            summaries = await asyncio.gather(
                *[self._summarize(conv) for conv in conversations]
            )
        except Exception as exc:
            logger.error(
                "Conversation cache update aborted: %s",
                provider_error_info(exc),
            )
            raise

        self._entries = tuple(summaries)
        self._last_cache_update = now
        logger.info("Cache updated with %d conversations", len(self._entries))
        return True

    def search_conversations(self, query: str | None) -> list[ConversationSummary]:
        logger.info("Searching conversations with query: %r", query)
        return search_conversations(self._entries, query)

    # ── Internal ──

    async def _summarize(self, conv: Any) -> ConversationSummary:
        participants, messages = await asyncio.gather(
            self._provider.list_participants(conv.sid),
            self._provider.list_messages(conv.sid, limit=1, order="desc"),
        )

        try:
            attributes = parse_attributes(conv.attributes)
        except ValueError as exc:
            logger.error("Error parsing attributes for conversation %s: %s", conv.sid, exc)
            raise

        phone_number = ""
        if participants:
            binding = participants[0].messaging_binding or {}
            phone_number = binding.get("address") or ""

        last = messages[0] if messages else None

        return ConversationSummary(
            sid=conv.sid,
            friendly_name=conv.friendly_name or "",
            phone_number=phone_number,
            email=attributes.get("email") or "",
            name=attributes.get("name") or "",
            last_message=(last.body or "") if last else "",
            last_message_time=last.date_created if last else None,
        )


class CacheRefresher:
    """
    Background loop that calls ``cache.update_cache()`` every ``interval``.

    The first refresh runs immediately on start(). Errors are logged and
    swallowed so one bad provider round-trip never kills the loop.
    """

    def __init__(self, cache: ConversationCache, interval: float | None = None) -> None:
        self._cache = cache
        self._interval = interval if interval is not None else cache.cache_ttl
        self._task: asyncio.Task | None = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        if self._running:
            logger.warning("CacheRefresher already running")
            return
        self._running = True
        self._task = asyncio.create_task(self._refresh_loop())
        logger.info("CacheRefresher started (interval=%.0fs)", self._interval)

    async def stop(self) -> None:
        """Stop the loop. Safe to call more than once."""
        self._running = False
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info("CacheRefresher stopped")

    async def refresh_once(self) -> None:
        try:
            await self._cache.update_cache()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.error("Periodic cache refresh failed: %s", exc)

    async def _refresh_loop(self) -> None:
        while self._running:
            await self.refresh_once()
            try:
                await asyncio.sleep(self._interval)
            except asyncio.CancelledError:
                break
