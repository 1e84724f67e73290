"""Domain events and the in-process event bus."""

from .event_bus import EventBus
from .event_types import (
    BaseEvent,
    MessageDeleted,
    MessageEdited,
    MessageSent,
    UserConnected,
    UserDisconnected,
    UserJoinedRoom,
    UserLeftRoom,
    UserStatusChanged,
)

__all__ = [
    "BaseEvent",
    "EventBus",
    "MessageDeleted",
    "MessageEdited",
    "MessageSent",
    "UserConnected",
    "UserDisconnected",
    "UserJoinedRoom",
    "UserLeftRoom",
    "UserStatusChanged",
]
