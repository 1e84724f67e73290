"""Domain models for RoomChat."""

from .factories import create_message, create_room, create_user, generate_id, now_ms
from .message import Message, MessageAuthor, MessageDTO, ReplyPreview
from .room import DEFAULT_ROOMS, Room, RoomInfo
from .user import AVATAR_COLORS, User, UserStatus, avatar_color_for

__all__ = [
    "AVATAR_COLORS",
    "DEFAULT_ROOMS",
    "Message",
    "MessageAuthor",
    "MessageDTO",
    "ReplyPreview",
    "Room",
    "RoomInfo",
    "User",
    "UserStatus",
    "avatar_color_for",
    "create_message",
    "create_room",
    "create_user",
    "generate_id",
    "now_ms",
]
