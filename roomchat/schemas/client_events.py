"""
Pydantic schemas for inbound client events.

Every frame a client sends is a JSON object {"type": ..., "payload": {...}}
drawn from a closed set of event types. validate_client_event() parses and
validates a raw frame and reports failures as a list of human-readable
messages rather than raising, so the registry can echo them back in an
ERROR frame.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from ..config import ChatConfig
from ..error_types import ErrorMessages
from ..models import UserStatus

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")

RoomId = Annotated[str, Field(min_length=1, max_length=50)]
MessageId = Annotated[str, Field(min_length=1, max_length=50)]


def _limit(info: ValidationInfo, name: str, default: int) -> int:
    context = info.context or {}
    return int(context.get(name, default))


class _Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class _ContentPayload(_Payload):
    @field_validator("content", mode="after", check_fields=False)
    @classmethod
    def validate_content(cls, v: str, info: ValidationInfo) -> str:
        """Trim, then require 1 to max_message_length characters."""
        max_length = _limit(info, "max_message_length", 2000)
        v = v.strip()
        if not v:
            raise PydanticCustomError("message_empty", "Message cannot be empty")
        if len(v) > max_length:
            raise PydanticCustomError(
                "message_too_long",
                "Message cannot exceed {max_length} characters",
                {"max_length": max_length},
            )
        return v


class JoinRoomPayload(_Payload):
    room_id: RoomId
    username: str

    @field_validator("username", mode="after")
    @classmethod
    def validate_username(cls, v: str, info: ValidationInfo) -> str:
        min_length = _limit(info, "min_username_length", 2)
        max_length = _limit(info, "max_username_length", 30)
        if len(v) < min_length:
            raise PydanticCustomError(
                "username_too_short",
                "Username must be at least {min_length} characters",
                {"min_length": min_length},
            )
        if len(v) > max_length:
            raise PydanticCustomError(
                "username_too_long",
                "Username must be at most {max_length} characters",
                {"max_length": max_length},
            )
        if not USERNAME_PATTERN.match(v):
            raise PydanticCustomError(
                "username_pattern",
                "Username can only contain letters, numbers, underscores, and hyphens",
            )
        return v


class LeaveRoomPayload(_Payload):
    room_id: RoomId


class SendMessagePayload(_ContentPayload):
    room_id: RoomId
    content: str
    reply_to: MessageId | None = None


class EditMessagePayload(_ContentPayload):
    message_id: MessageId
    content: str


class DeleteMessagePayload(_Payload):
    message_id: MessageId


class TypingPayload(_Payload):
    room_id: RoomId


class UpdateStatusPayload(_Payload):
    status: UserStatus


class JoinRoomEvent(BaseModel):
    type: Literal["JOIN_ROOM"]
    payload: JoinRoomPayload


class LeaveRoomEvent(BaseModel):
    type: Literal["LEAVE_ROOM"]
    payload: LeaveRoomPayload


class SendMessageEvent(BaseModel):
    type: Literal["SEND_MESSAGE"]
    payload: SendMessagePayload


class EditMessageEvent(BaseModel):
    type: Literal["EDIT_MESSAGE"]
    payload: EditMessagePayload


class DeleteMessageEvent(BaseModel):
    type: Literal["DELETE_MESSAGE"]
    payload: DeleteMessagePayload


class TypingStartEvent(BaseModel):
    type: Literal["TYPING_START"]
    payload: TypingPayload


class TypingStopEvent(BaseModel):
    type: Literal["TYPING_STOP"]
    payload: TypingPayload


class UpdateStatusEvent(BaseModel):
    type: Literal["UPDATE_STATUS"]
    payload: UpdateStatusPayload


ClientEvent = Annotated[
    JoinRoomEvent
    | LeaveRoomEvent
    | SendMessageEvent
    | EditMessageEvent
    | DeleteMessageEvent
    | TypingStartEvent
    | TypingStopEvent
    | UpdateStatusEvent,
    Field(discriminator="type"),
]

_client_event_adapter: TypeAdapter[Any] = TypeAdapter(ClientEvent)


@dataclass
class ValidationOutcome:
    """Result of validating one inbound frame."""

    ok: bool
    event: Any = None
    messages: list[str] = field(default_factory=list)

    @property
    def error_message(self) -> str:
        return ", ".join(self.messages)


class ClientEventValidator:
    """
    Structural validator for inbound frames.

    Limits (username and content lengths, frame size) come from ChatConfig.
    """

    def __init__(self, chat_config: ChatConfig | None = None) -> None:
        config = chat_config or ChatConfig()
        self.max_frame_bytes = config.max_frame_bytes
        self._context = {
            "max_message_length": config.max_message_length,
            "min_username_length": config.min_username_length,
            "max_username_length": config.max_username_length,
        }

    def validate(self, data: Any) -> ValidationOutcome:
        """
        Validate already-parsed JSON against the client event union.

        Args:
            data: Parsed JSON value

        Returns:
            ValidationOutcome: ok with the typed event, or the list of violation messages
        """
        try:
            event = _client_event_adapter.validate_python(data, context=self._context)
        except ValidationError as e:
            return ValidationOutcome(ok=False, messages=[error["msg"] for error in e.errors()])
        return ValidationOutcome(ok=True, event=event)

    def parse_frame(self, raw_frame: str | bytes) -> ValidationOutcome:
        """Decode a raw text frame and validate it."""
        size = len(raw_frame.encode("utf-8")) if isinstance(raw_frame, str) else len(raw_frame)
        if size > self.max_frame_bytes:
            return ValidationOutcome(ok=False, messages=[ErrorMessages.FRAME_TOO_LARGE])
        try:
            data = json.loads(raw_frame)
        except (json.JSONDecodeError, UnicodeDecodeError, RecursionError):
            return ValidationOutcome(ok=False, messages=[ErrorMessages.INVALID_JSON])
        return self.validate(data)


def validate_client_event(data: Any, chat_config: ChatConfig | None = None) -> ValidationOutcome:
    """Validate a parsed client event with default or given limits."""
    return ClientEventValidator(chat_config).validate(data)
