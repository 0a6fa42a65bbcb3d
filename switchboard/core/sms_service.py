"""
SMS Service — outbound message dispatch with short-window deduplication.

A message goes out on one of two channels:
  - conversation channel, when a conversation SID is given
    (posted to the conversation as ``author``)
  - direct SMS otherwise, from our own number

Identical (to, body) pairs sent within the dedup window are suppressed.
Webhooks and agent actions can both trigger the same text a few ms apart;
the window is best-effort, per-instance and in-memory only.

After a successful send the service pushes a ``newMessage`` event to
browsers and, for conversation sends, an ``updateConversation`` preview.
Neither push can fail the send.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

from switchboard.core.broadcast import BroadcastFn, BroadcastRegistry
from switchboard.core.events import (
    new_message_event,
    to_iso,
    update_conversation_event,
    utc_now_iso,
)
from switchboard.core.models import SendResult
from switchboard.core.provider import parse_attributes, provider_error_info

logger = logging.getLogger("switchboard.sms")

DEDUP_WINDOW = 60.0  # seconds


def message_key(to: str, body: str) -> str:
    return f"{to}-{body}"


class SentMessageCache:
    """
    Time-aware set of recently sent message keys.

    Each key carries its own expiry; expired keys are swept whenever the
    cache is touched, so there is one dict and no per-entry timers.
    """

    def __init__(
        self,
        window: float = DEDUP_WINDOW,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._window = window
        self._clock = clock
        self._expiry: dict[str, float] = {}

    def __contains__(self, key: str) -> bool:
        self._sweep()
        return key in self._expiry

    def __len__(self) -> int:
        self._sweep()
        return len(self._expiry)

    def add(self, key: str) -> None:
        self._sweep()
        self._expiry[key] = self._clock() + self._window

    def discard(self, key: str) -> None:
        self._expiry.pop(key, None)

    def clear(self) -> None:
        self._expiry.clear()

    def _sweep(self) -> None:
        now = self._clock()
        expired = [k for k, deadline in self._expiry.items() if deadline <= now]
        for key in expired:
            del self._expiry[key]


class SMSService:
    """Sends SMS through Twilio and notifies connected browsers."""

    def __init__(
        self,
        provider: Any,
        from_number: str,
        broadcast: Optional[BroadcastFn] = None,
        registry: Optional[BroadcastRegistry] = None,
        dedup_window: float = DEDUP_WINDOW,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._provider = provider
        self._from_number = from_number
        self._broadcast = broadcast
        self._registry = registry
        self._sent = SentMessageCache(window=dedup_window, clock=clock)

    @property
    def from_number(self) -> str:
        return self._from_number

    @property
    def sent_messages(self) -> SentMessageCache:
        return self._sent

    def _resolve_broadcast(self) -> Optional[BroadcastFn]:
        if self._broadcast is not None:
            return self._broadcast
        if self._registry is not None:
            return self._registry.get_broadcast()
        return None

    async def send_sms(
        self,
        to: str,
        body: str,
        conversation_sid: Optional[str] = None,
        author: Optional[str] = None,
    ) -> SendResult:
        """
        Send ``body`` to ``to``.

        Returns SendResult(success=True, message_sid=...) on success, or
        SendResult(success=False, duplicate=True) when the same (to, body)
        was sent inside the dedup window. Provider errors are logged with
        Twilio's code/more_info and re-raised.
        """
        key = message_key(to, body)
        if key in self._sent:
            logger.warning("Duplicate SMS detected to=%s conversation=%s", to, conversation_sid)
            return SendResult(
                success=False, duplicate=True, conversation_sid=conversation_sid
            )

        sender = author or self._from_number
        try:
            if conversation_sid:
                message = await self._provider.create_message(
                    conversation_sid, body=body, author=sender
                )
            else:
                message = await self._provider.create_direct_message(
                    body=body, from_=self._from_number, to=to
                )
        except Exception as exc:
            logger.error(
                "Error sending SMS to=%s conversation=%s error=%s",
                to, conversation_sid, provider_error_info(exc),
            )
            raise

        self._sent.add(key)

        date_created = to_iso(getattr(message, "date_created", None)) or utc_now_iso()
        await self._notify(
            new_message_event(
                conversation_sid=conversation_sid,
                message_sid=message.sid,
                author=sender,
                body=body,
                date_created=date_created,
            )
        )

        if conversation_sid:
            await self._broadcast_conversation_update(conversation_sid, body, date_created)

        logger.info(
            "SMS sent successfully to=%s conversation=%s sid=%s",
            to, conversation_sid, message.sid,
        )
        return SendResult(
            success=True,
            message_sid=message.sid,
            conversation_sid=conversation_sid,
            date_created=date_created,
        )

    async def _notify(self, payload: dict[str, Any]) -> None:
        broadcast = self._resolve_broadcast()
        if broadcast is None:
            logger.warning(
                "Broadcast function not available; %s event not sent",
                payload["type"],
            )
            return
        try:
            await broadcast(payload)
        except Exception as exc:
            logger.error("Broadcast of %s failed: %s", payload["type"], exc)

    async def _broadcast_conversation_update(
        self, conversation_sid: str, body: str, date_created: str
    ) -> None:
        try:
            conversation = await self._provider.fetch_conversation(conversation_sid)
            attributes = parse_attributes(conversation.attributes)
        except Exception as exc:
            logger.error(
                "Error refreshing conversation %s after send: %s",
                conversation_sid, provider_error_info(exc),
            )
            return

        await self._notify(
            update_conversation_event(
                conversation_sid=conversation.sid,
                friendly_name=conversation.friendly_name,
                last_message=body,
                last_message_time=date_created,
                attributes=attributes,
            )
        )
