"""
Conversation search over a cached snapshot.
"""

from __future__ import annotations

from typing import Iterable

from switchboard.core.models import ConversationSummary


def matches(summary: ConversationSummary, query: str) -> bool:
    """Case-insensitive substring match on any contact field."""
    needle = query.lower()
    return any(
        needle in (field or "").lower()
        for field in (
            summary.phone_number,
            summary.email,
            summary.name,
            summary.friendly_name,
        )
    )


def search_conversations(
    entries: Iterable[ConversationSummary], query: str | None
) -> list[ConversationSummary]:
    """Filter ``entries`` by ``query``, keeping their order. Empty query matches all."""
    if not query:
        return list(entries)
    return [entry for entry in entries if matches(entry, query)]
