"""
Twilio Provider — async facade over the Twilio REST client.

Every call runs the synchronous SDK in a worker thread so a slow Twilio
round-trip only stalls the coroutine awaiting it, never the event loop.

Configuration (environment variables, see switchboard.settings):
  TWILIO_ACCOUNT_SID   — Twilio account SID
  TWILIO_AUTH_TOKEN    — Twilio auth token
  TWILIO_PHONE_NUMBER  — our number, used as proxy address for participants
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import Any

logger = logging.getLogger("switchboard.provider")

# Twilio REST error code for "resource not found"
TWILIO_ERROR_NOT_FOUND = 20404


class ProviderUnavailableError(RuntimeError):
    """Raised when the Twilio client cannot be constructed."""


class AttributeParseError(ValueError):
    """A conversation's ``attributes`` blob is not valid JSON."""


def parse_attributes(raw: Any) -> dict[str, Any]:
    """
    Parse a provider-opaque attributes blob into a dict.

    ``None`` / empty string → ``{}``; dicts pass through unchanged.
    Raises AttributeParseError for anything that is not a JSON object.
    """
    if raw is None or raw == "":
        return {}
    if isinstance(raw, dict):
        return raw
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise AttributeParseError(f"Invalid attributes JSON: {exc}") from exc
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise AttributeParseError(
            f"Attributes must be a JSON object, got {type(parsed).__name__}"
        )
    return parsed


def provider_error_info(exc: BaseException) -> dict[str, Any]:
    """Pull Twilio's error code / status / more_info off an exception, if any."""
    info: dict[str, Any] = {"message": str(exc)}
    for field in ("code", "status", "more_info"):
        value = getattr(exc, field, None)
        if value is not None:
            info[field] = value
    return info


def is_not_found(exc: BaseException) -> bool:
    return getattr(exc, "code", None) == TWILIO_ERROR_NOT_FOUND


class TwilioProvider:
    """Conversation, message, participant and room operations on Twilio."""

    def __init__(
        self,
        account_sid: str = "",
        auth_token: str = "",
        proxy_address: str = "",
        client: Any = None,
    ) -> None:
        self._account_sid = account_sid
        self._auth_token = auth_token
        self._proxy_address = proxy_address
        self._client = client

    def _get_client(self):
        """Lazy-initialize the Twilio client."""
        if self._client is None:
            if not self._account_sid or not self._auth_token:
                raise ProviderUnavailableError("Twilio credentials not set")
            from twilio.rest import Client

            self._client = Client(self._account_sid, self._auth_token)
            logger.info("Twilio client initialized")
        return self._client

    def _conversation(self, sid: str):
        return self._get_client().conversations.v1.conversations(sid)

    # ── Conversations ──

    async def list_conversations(self) -> list[Any]:
        return await asyncio.to_thread(
            lambda: self._get_client().conversations.v1.conversations.list()
        )

    async def fetch_conversation(self, sid: str) -> Any:
        return await asyncio.to_thread(lambda: self._conversation(sid).fetch())

    async def create_conversation(
        self, friendly_name: str, attributes: dict[str, Any] | None = None
    ) -> Any:
        payload = json.dumps(attributes or {})
        return await asyncio.to_thread(
            lambda: self._get_client().conversations.v1.conversations.create(
                friendly_name=friendly_name,
                attributes=payload,
            )
        )

    async def update_conversation_attributes(
        self, sid: str, attributes: dict[str, Any]
    ) -> Any:
        payload = json.dumps(attributes)
        return await asyncio.to_thread(
            lambda: self._conversation(sid).update(attributes=payload)
        )

    async def delete_conversation(self, sid: str) -> bool:
        return await asyncio.to_thread(lambda: self._conversation(sid).delete())

    # ── Participants ──

    async def list_participants(self, sid: str) -> list[Any]:
        return await asyncio.to_thread(
            lambda: self._conversation(sid).participants.list()
        )

    async def add_participant(self, sid: str, phone_number: str) -> Any:
        """Bind an SMS participant to the conversation through our number."""
        return await asyncio.to_thread(
            lambda: self._conversation(sid).participants.create(
                messaging_binding_address=phone_number,
                messaging_binding_proxy_address=self._proxy_address,
            )
        )

    # ── Messages ──

    async def list_messages(
        self, sid: str, limit: int | None = None, order: str = "asc"
    ) -> list[Any]:
        return await asyncio.to_thread(
            lambda: self._conversation(sid).messages.list(order=order, limit=limit)
        )

    async def create_message(self, sid: str, body: str, author: str) -> Any:
        """Post a message on a conversation's channel."""
        return await asyncio.to_thread(
            lambda: self._conversation(sid).messages.create(body=body, author=author)
        )

    async def create_direct_message(self, body: str, from_: str, to: str) -> Any:
        """Send a plain SMS, outside any conversation."""
        return await asyncio.to_thread(
            lambda: self._get_client().messages.create(body=body, from_=from_, to=to)
        )

    async def mark_messages_read(self, sid: str, our_address: str) -> int:
        """Flag every unread inbound message as read. Returns how many changed."""
        messages = await self.list_messages(sid, limit=1000)
        pending = []
        for message in messages:
            try:
                attributes = parse_attributes(message.attributes)
            except AttributeParseError:
                attributes = {}
            if not attributes.get("read") and message.author != our_address:
                pending.append(message)

        read_payload = json.dumps({"read": True})
        await asyncio.gather(*[
            asyncio.to_thread(
                lambda m=m: self._conversation(sid).messages(m.sid).update(
                    attributes=read_payload
                )
            )
            for m in pending
        ])
        return len(pending)

    # ── Video ──

    async def create_video_room(self, unique_name: str | None = None) -> Any:
        name = unique_name or f"VideoRoom_{int(time.time() * 1000)}"
        return await asyncio.to_thread(
            lambda: self._get_client().video.v1.rooms.create(unique_name=name)
        )
