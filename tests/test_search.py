"""
Tests for conversation search over the cached snapshot.
"""

import pytest

from conftest import FakeClock, make_conversation, make_participant, make_provider
from switchboard.core.cache import ConversationCache
from switchboard.core.models import ConversationSummary
from switchboard.core.search import matches, search_conversations


ENTRY = ConversationSummary(
    sid="CH1",
    friendly_name="Foo",
    phone_number="+1234567890",
    email="a@b.com",
    name="Test User",
)
OTHER = ConversationSummary(
    sid="CH2",
    friendly_name="Support Thread",
    phone_number="+447700900001",
    email="jane@example.org",
    name="Jane",
)


class TestMatches:

    def test_mixed_case_name(self):
        assert matches(ENTRY, "test user")
        assert matches(ENTRY, "TEST USER")

    def test_phone_substring(self):
        assert matches(ENTRY, "456")
        assert matches(ENTRY, "+1234")

    def test_email(self):
        assert matches(ENTRY, "A@B.COM")

    def test_friendly_name(self):
        assert matches(ENTRY, "foo")

    def test_no_match(self):
        assert not matches(ENTRY, "zzz")


class TestSearchConversations:

    def test_empty_query_returns_all_in_order(self):
        assert search_conversations([OTHER, ENTRY], "") == [OTHER, ENTRY]

    def test_none_query_returns_all(self):
        assert search_conversations([ENTRY], None) == [ENTRY]

    def test_filters(self):
        assert search_conversations([ENTRY, OTHER], "jane") == [OTHER]

    def test_non_matching_returns_none(self):
        assert search_conversations([ENTRY, OTHER], "nobody-here") == []

    def test_keeps_cache_order_for_multiple_hits(self):
        assert search_conversations([OTHER, ENTRY], "+") == [OTHER, ENTRY]


class TestCacheSearch:

    @pytest.mark.asyncio
    async def test_search_after_refresh(self):
        provider = make_provider(
            conversations=[
                make_conversation(
                    sid="CH1",
                    friendly_name="Foo",
                    attributes='{"email": "a@b.com", "name": "Test User"}',
                ),
                make_conversation(sid="CH2", friendly_name="Other"),
            ],
            participants={"CH1": [make_participant("+1234567890")]},
        )
        cache = ConversationCache(provider, clock=FakeClock())
        await cache.update_cache()

        assert [r.sid for r in cache.search_conversations("test user")] == ["CH1"]
        assert [r.sid for r in cache.search_conversations("")] == ["CH1", "CH2"]
        assert cache.search_conversations("missing") == []

    def test_search_on_empty_cache(self):
        cache = ConversationCache(make_provider())
        assert cache.search_conversations("anything") == []
