"""
Broadcast payloads pushed to browser clients.

The browser matches on ``type`` and on these exact camelCase keys, so the
shapes here are a wire contract:

  newMessage          conversationSid, messageSid, author, body, dateCreated
  updateConversation  conversationSid, friendlyName, lastMessage,
                      lastMessageTime, attributes
  deleteConversation  conversationSid
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


class EventType(str, Enum):
    NEW_MESSAGE = "newMessage"
    UPDATE_CONVERSATION = "updateConversation"
    DELETE_CONVERSATION = "deleteConversation"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def to_iso(value: Any) -> Optional[str]:
    """datetime → ISO-8601 string; strings and None pass through."""
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def new_message_event(
    conversation_sid: Optional[str],
    message_sid: Optional[str],
    author: str,
    body: str,
    date_created: Any = None,
) -> dict[str, Any]:
    return {
        "type": EventType.NEW_MESSAGE.value,
        "conversationSid": conversation_sid,
        "messageSid": message_sid,
        "author": author,
        "body": body,
        "dateCreated": to_iso(date_created) or utc_now_iso(),
    }


def update_conversation_event(
    conversation_sid: str,
    friendly_name: str,
    last_message: str,
    last_message_time: Any,
    attributes: dict[str, Any],
) -> dict[str, Any]:
    return {
        "type": EventType.UPDATE_CONVERSATION.value,
        "conversationSid": conversation_sid,
        "friendlyName": friendly_name,
        "lastMessage": last_message,
        "lastMessageTime": to_iso(last_message_time),
        "attributes": attributes,
    }


def delete_conversation_event(conversation_sid: str) -> dict[str, Any]:
    return {
        "type": EventType.DELETE_CONVERSATION.value,
        "conversationSid": conversation_sid,
    }
