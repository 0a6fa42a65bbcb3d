"""
Tests for the Twilio provider facade and attribute/error helpers.
The Twilio SDK client is a MagicMock; no network.
"""

import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from conftest import TwilioError, make_message
from switchboard.core.provider import (
    AttributeParseError,
    ProviderUnavailableError,
    TwilioProvider,
    is_not_found,
    parse_attributes,
    provider_error_info,
)


class TestParseAttributes:

    @pytest.mark.parametrize("raw", [None, "", "null"])
    def test_empty_values(self, raw):
        assert parse_attributes(raw) == {}

    def test_json_object(self):
        assert parse_attributes('{"email": "a@b.com"}') == {"email": "a@b.com"}

    def test_dict_passes_through(self):
        attrs = {"name": "x"}
        assert parse_attributes(attrs) is attrs

    def test_invalid_json(self):
        with pytest.raises(AttributeParseError):
            parse_attributes("{nope")

    def test_non_object_json(self):
        with pytest.raises(AttributeParseError):
            parse_attributes("[1, 2]")

    def test_parse_error_is_value_error(self):
        assert issubclass(AttributeParseError, ValueError)


class TestErrorHelpers:

    def test_twilio_fields_extracted(self):
        exc = TwilioError("missing", code=20404, status=404, more_info="https://x")
        info = provider_error_info(exc)
        assert info == {
            "message": "missing",
            "code": 20404,
            "status": 404,
            "more_info": "https://x",
        }

    def test_plain_exception(self):
        assert provider_error_info(RuntimeError("boom")) == {"message": "boom"}

    def test_is_not_found(self):
        assert is_not_found(TwilioError("x", code=20404))
        assert not is_not_found(TwilioError("x", code=21211))
        assert not is_not_found(RuntimeError("x"))


class TestTwilioProvider:

    def test_missing_credentials(self):
        provider = TwilioProvider()
        with pytest.raises(ProviderUnavailableError):
            provider._get_client()

    @pytest.mark.asyncio
    async def test_list_conversations(self):
        client = MagicMock()
        client.conversations.v1.conversations.list.return_value = ["c1"]
        provider = TwilioProvider(client=client)

        assert await provider.list_conversations() == ["c1"]

    @pytest.mark.asyncio
    async def test_list_messages_passes_order_and_limit(self):
        client = MagicMock()
        conv = client.conversations.v1.conversations.return_value
        conv.messages.list.return_value = ["m"]
        provider = TwilioProvider(client=client)

        result = await provider.list_messages("CH1", limit=1, order="desc")

        assert result == ["m"]
        client.conversations.v1.conversations.assert_called_with("CH1")
        conv.messages.list.assert_called_once_with(order="desc", limit=1)

    @pytest.mark.asyncio
    async def test_create_message(self):
        client = MagicMock()
        conv = client.conversations.v1.conversations.return_value
        provider = TwilioProvider(client=client)

        await provider.create_message("CH1", body="hi", author="+1")

        conv.messages.create.assert_called_once_with(body="hi", author="+1")

    @pytest.mark.asyncio
    async def test_create_direct_message(self):
        client = MagicMock()
        provider = TwilioProvider(client=client)

        await provider.create_direct_message(body="hi", from_="+1", to="+2")

        client.messages.create.assert_called_once_with(body="hi", from_="+1", to="+2")

    @pytest.mark.asyncio
    async def test_create_conversation_serialises_attributes(self):
        client = MagicMock()
        provider = TwilioProvider(client=client)

        await provider.create_conversation("Friendly", {"phoneNumber": "+1"})

        kwargs = client.conversations.v1.conversations.create.call_args.kwargs
        assert kwargs["friendly_name"] == "Friendly"
        assert json.loads(kwargs["attributes"]) == {"phoneNumber": "+1"}

    @pytest.mark.asyncio
    async def test_add_participant_uses_proxy_address(self):
        client = MagicMock()
        conv = client.conversations.v1.conversations.return_value
        provider = TwilioProvider(proxy_address="+1999", client=client)

        await provider.add_participant("CH1", "+1234567890")

        conv.participants.create.assert_called_once_with(
            messaging_binding_address="+1234567890",
            messaging_binding_proxy_address="+1999",
        )

    @pytest.mark.asyncio
    async def test_mark_messages_read_skips_ours_and_read(self):
        client = MagicMock()
        conv = client.conversations.v1.conversations.return_value
        conv.messages.list.return_value = [
            make_message(sid="IM1", author="+1234567890"),
            make_message(sid="IM2", author="+1999"),
            make_message(sid="IM3", author="+1234567890", attributes='{"read": true}'),
        ]
        provider = TwilioProvider(client=client)

        updated = await provider.mark_messages_read("CH1", our_address="+1999")

        assert updated == 1
        conv.messages.assert_called_once_with("IM1")
        conv.messages.return_value.update.assert_called_once_with(
            attributes=json.dumps({"read": True})
        )

    @pytest.mark.asyncio
    async def test_create_video_room(self):
        client = MagicMock()
        client.video.v1.rooms.create.return_value = SimpleNamespace(sid="RM1", unique_name="r")
        provider = TwilioProvider(client=client)

        room = await provider.create_video_room("r")

        assert room.sid == "RM1"
        client.video.v1.rooms.create.assert_called_once_with(unique_name="r")

    @pytest.mark.asyncio
    async def test_errors_propagate(self):
        client = MagicMock()
        client.conversations.v1.conversations.list.side_effect = TwilioError("down", code=20500)
        provider = TwilioProvider(client=client)

        with pytest.raises(TwilioError):
            await provider.list_conversations()
