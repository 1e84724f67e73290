"""
Server-to-client event builders.

Every outbound frame is {"type": <ServerEventType>, "payload": {...}}.
Payload keys are camelCase and their order is part of the contract with
existing clients, so events are built as plain dicts in a fixed order and
serialized compactly.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import TYPE_CHECKING, Any

from ..error_types import ErrorCode

if TYPE_CHECKING:
    from ..models import MessageDTO, RoomInfo, User


class ServerEventType(str, Enum):
    CONNECTED = "CONNECTED"
    ROOM_HISTORY = "ROOM_HISTORY"
    USER_JOINED = "USER_JOINED"
    USER_LEFT = "USER_LEFT"
    MESSAGE_RECEIVED = "MESSAGE_RECEIVED"
    MESSAGE_EDITED = "MESSAGE_EDITED"
    MESSAGE_DELETED = "MESSAGE_DELETED"
    USER_TYPING = "USER_TYPING"
    USER_STOPPED_TYPING = "USER_STOPPED_TYPING"
    USER_STATUS_CHANGED = "USER_STATUS_CHANGED"
    ERROR = "ERROR"


def build_event(event_type: ServerEventType, payload: dict[str, Any]) -> dict[str, Any]:
    return {"type": event_type.value, "payload": payload}


def serialize_event(event: dict[str, Any]) -> str:
    """Compact JSON text for the wire."""
    return json.dumps(event, separators=(",", ":"), ensure_ascii=False)


def connected_event(user: User, rooms: list[RoomInfo]) -> dict[str, Any]:
    return build_event(
        ServerEventType.CONNECTED,
        {"user": user.to_wire(), "rooms": [room.to_wire() for room in rooms]},
    )


def room_history_event(room_id: str, messages: list[MessageDTO], users: list[User]) -> dict[str, Any]:
    return build_event(
        ServerEventType.ROOM_HISTORY,
        {
            "roomId": room_id,
            "messages": [message.to_wire() for message in messages],
            "users": [user.to_wire() for user in users],
        },
    )


def user_joined_event(user: User, room_id: str) -> dict[str, Any]:
    return build_event(ServerEventType.USER_JOINED, {"user": user.to_wire(), "roomId": room_id})


def user_left_event(user_id: str, room_id: str) -> dict[str, Any]:
    return build_event(ServerEventType.USER_LEFT, {"userId": user_id, "roomId": room_id})


def message_received_event(message: MessageDTO) -> dict[str, Any]:
    return build_event(ServerEventType.MESSAGE_RECEIVED, {"message": message.to_wire()})


def message_edited_event(message_id: str, content: str, edited_at: int) -> dict[str, Any]:
    return build_event(
        ServerEventType.MESSAGE_EDITED,
        {"messageId": message_id, "content": content, "editedAt": edited_at},
    )


def message_deleted_event(message_id: str) -> dict[str, Any]:
    return build_event(ServerEventType.MESSAGE_DELETED, {"messageId": message_id})


def user_typing_event(user_id: str, username: str, room_id: str) -> dict[str, Any]:
    return build_event(
        ServerEventType.USER_TYPING,
        {"userId": user_id, "username": username, "roomId": room_id},
    )


def user_stopped_typing_event(user_id: str, room_id: str) -> dict[str, Any]:
    return build_event(ServerEventType.USER_STOPPED_TYPING, {"userId": user_id, "roomId": room_id})


def user_status_changed_event(user_id: str, status: str) -> dict[str, Any]:
    return build_event(ServerEventType.USER_STATUS_CHANGED, {"userId": user_id, "status": status})


def error_event(code: ErrorCode | str, message: str) -> dict[str, Any]:
    """ERROR frame; codes outside the closed set become INTERNAL_ERROR."""
    return build_event(ServerEventType.ERROR, {"code": ErrorCode.coerce(code).value, "message": message})
