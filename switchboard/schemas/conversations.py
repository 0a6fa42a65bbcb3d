from typing import Optional

from pydantic import BaseModel, field_validator

from switchboard.validators import validate_dob, validate_email, validate_phone_number

CONFIRM_DELETE_TOKEN = "CONFIRM_DELETE"
OPT_OUT_DISCLAIMER = (
    "(Note: you may reply STOP to no longer receive messages from us. "
    "Msg&Data Rates may apply.)"
)


class SendMessageRequest(BaseModel):
    message: str
    author: Optional[str] = None

    @field_validator("message")
    @classmethod
    def _message_not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Message cannot be empty")
        return v

    @field_validator("author")
    @classmethod
    def _strip_author(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v else v


class DeleteConversationRequest(BaseModel):
    confirmToken: Optional[str] = None


class StartConversationRequest(BaseModel):
    phoneNumber: str
    message: str
    name: Optional[str] = None
    email: Optional[str] = None
    dob: Optional[str] = None
    state: Optional[str] = None

    @field_validator("phoneNumber")
    @classmethod
    def _check_phone(cls, v: str) -> str:
        if not validate_phone_number(v):
            raise ValueError("Invalid phone number format")
        return v

    @field_validator("message")
    @classmethod
    def _check_message(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Message content cannot be empty")
        return v

    @field_validator("email")
    @classmethod
    def _check_email(cls, v: Optional[str]) -> Optional[str]:
        if v and not validate_email(v):
            raise ValueError("Invalid email format")
        return v

    @field_validator("dob")
    @classmethod
    def _check_dob(cls, v: Optional[str]) -> Optional[str]:
        if v and not validate_dob(v):
            raise ValueError("Invalid date format")
        return v

    @field_validator("name", "state")
    @classmethod
    def _strip(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v else v


class StartConversationResponse(BaseModel):
    sid: str
    existing: bool = False
    messageSid: Optional[str] = None


class VideoRoomRequest(BaseModel):
    customerPhoneNumber: str
    conversationSid: Optional[str] = None

    @field_validator("customerPhoneNumber")
    @classmethod
    def _check_phone(cls, v: str) -> str:
        if not validate_phone_number(v):
            raise ValueError("Invalid customer phone number")
        return v


class VideoRoomResponse(BaseModel):
    roomSid: str
    roomName: str
    link: str = ""
