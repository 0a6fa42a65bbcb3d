"""
Shared fixtures and fakes for the Switchboard test suite.
Twilio is never contacted: the provider is an AsyncMock-backed fake and
provider records are SimpleNamespaces shaped like Twilio SDK instances.
"""

import os
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

os.environ.setdefault("SWITCHBOARD_TESTING", "1")

OUR_NUMBER = "+15550000000"


class FakeClock:
    """Manually advanced replacement for time.monotonic."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_conversation(sid="CH1", friendly_name="Foo", attributes="{}"):
    return SimpleNamespace(sid=sid, friendly_name=friendly_name, attributes=attributes)


def make_participant(address="+1234567890"):
    binding = {"address": address, "proxy_address": OUR_NUMBER, "type": "sms"}
    return SimpleNamespace(sid="MB1", messaging_binding=binding)


def make_message(
    sid="IM1",
    body="hello",
    author="+1234567890",
    date_created=None,
    attributes="{}",
):
    return SimpleNamespace(
        sid=sid,
        body=body,
        author=author,
        date_created=date_created or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc),
        attributes=attributes,
    )


class TwilioError(Exception):
    """Mimics twilio.base.exceptions.TwilioRestException's fields."""

    def __init__(self, msg, code=None, status=400, more_info=None):
        super().__init__(msg)
        self.msg = msg
        self.code = code
        self.status = status
        self.more_info = more_info


def make_provider(conversations=None, participants=None, messages=None):
    """
    Fake provider. ``participants`` / ``messages`` map conversation sid →
    list; missing sids return [].
    """
    participants = participants or {}
    messages = messages or {}

    provider = AsyncMock()
    provider.list_conversations = AsyncMock(return_value=list(conversations or []))
    provider.list_participants = AsyncMock(
        side_effect=lambda sid: list(participants.get(sid, []))
    )
    provider.list_messages = AsyncMock(
        side_effect=lambda sid, limit=None, order="asc": list(messages.get(sid, []))[:limit]
    )
    provider.create_message = AsyncMock(return_value=make_message(sid="IM100"))
    provider.create_direct_message = AsyncMock(
        return_value=SimpleNamespace(sid="SM100", date_created=None)
    )
    provider.fetch_conversation = AsyncMock(
        return_value=make_conversation(attributes='{"name": "Test User"}')
    )
    return provider


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def provider():
    return make_provider()


@pytest.fixture
def test_client():
    """FastAPI TestClient without startup; tests patch the singletons they need."""
    from fastapi.testclient import TestClient
    from switchboard.app import app
    return TestClient(app)


@pytest.fixture
def wired(provider):
    """Patch switchboard.setup with a fake provider, real cache/SMS service and registry."""
    from switchboard.core.broadcast import BroadcastRegistry
    from switchboard.core.cache import ConversationCache
    from switchboard.core.sms_service import SMSService

    registry = BroadcastRegistry()
    events = []

    async def _record(payload):
        events.append(payload)

    registry.set_broadcast(_record)
    cache = ConversationCache(provider)
    sms_service = SMSService(provider, from_number=OUR_NUMBER, registry=registry)

    with patch("switchboard.setup._provider", provider), \
         patch("switchboard.setup._cache", cache), \
         patch("switchboard.setup._sms_service", sms_service), \
         patch("switchboard.setup._registry", registry), \
         patch("switchboard.settings.TWILIO_PHONE_NUMBER", OUR_NUMBER):
        yield SimpleNamespace(
            provider=provider,
            cache=cache,
            sms_service=sms_service,
            registry=registry,
            events=events,
        )
