"""
Factories for new domain entities.

Ids are random hex strings: 12 characters for users and connections,
16 for messages.
"""

import time
import uuid

from .message import Message
from .room import Room
from .user import User, UserStatus, avatar_color_for


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def generate_id(length: int = 12) -> str:
    return uuid.uuid4().hex[:length]


def create_user(username: str) -> User:
    return User(
        id=generate_id(12),
        username=username,
        avatar=avatar_color_for(username),
        status=UserStatus.ONLINE,
        joined_at=now_ms(),
    )


def create_room(room_id: str, name: str, description: str = "") -> Room:
    return Room(id=room_id, name=name, description=description, created_at=now_ms())


def create_message(room_id: str, author_id: str, content: str, reply_to: str | None = None) -> Message:
    return Message(
        id=generate_id(16),
        room_id=room_id,
        author_id=author_id,
        content=content,
        created_at=now_ms(),
        reply_to=reply_to,
    )
