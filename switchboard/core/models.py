"""
Shared data models for the conversation core.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ConversationSummary(BaseModel):
    """Denormalised, cached view of one conversation (contact + last message)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    sid: str
    friendly_name: str = ""
    phone_number: str = ""
    email: str = ""
    name: str = ""
    last_message: str = ""
    last_message_time: Optional[datetime] = None


class SendResult(BaseModel):
    """Outcome of SMSService.send_sms."""

    success: bool
    message_sid: Optional[str] = None
    duplicate: bool = False
    conversation_sid: Optional[str] = None
    date_created: Optional[str] = None
