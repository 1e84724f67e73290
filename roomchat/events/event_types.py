"""
Domain event types for RoomChat.

These events are published by the use-case layer and consumed by anything
that needs to react to presence or message changes without being coupled
to the use case that caused them. The broadcast router, for example,
listens for UserStatusChanged to fan presence updates out to every room
the user belongs to.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime


def _default_timestamp() -> datetime:
    """Factory function for default timestamp."""
    return datetime.now(UTC)


@dataclass
class BaseEvent:
    """
    Base class for all domain events.

    Subclasses set event_type in __post_init__ so logs and subscribers can
    identify the event without isinstance checks.
    """

    timestamp: datetime = field(default_factory=_default_timestamp, init=False)
    event_type: str = field(default="", init=False)

    def __post_init__(self) -> None:
        if not self.event_type:
            self.event_type = type(self).__name__


@dataclass
class UserConnected(BaseEvent):
    """A user joined a room and is now online."""

    user_id: str
    username: str
    connection_id: str | None = None

    def __post_init__(self) -> None:
        super().__post_init__()
        self.event_type = "user:connected"


@dataclass
class UserDisconnected(BaseEvent):
    """A user's connection closed."""

    user_id: str
    connection_id: str | None = None

    def __post_init__(self) -> None:
        super().__post_init__()
        self.event_type = "user:disconnected"


@dataclass
class UserStatusChanged(BaseEvent):
    """
    A user's presence status was changed explicitly.

    Fanned out to every room the user participates in, not only the room
    of the connection that requested the change.
    """

    user_id: str
    status: str

    def __post_init__(self) -> None:
        super().__post_init__()
        self.event_type = "user:status-changed"


@dataclass
class UserJoinedRoom(BaseEvent):
    """A user was added to a room's participants."""

    user_id: str
    room_id: str

    def __post_init__(self) -> None:
        super().__post_init__()
        self.event_type = "room:user-joined"


@dataclass
class UserLeftRoom(BaseEvent):
    """A user was removed from a room's participants."""

    user_id: str
    room_id: str

    def __post_init__(self) -> None:
        super().__post_init__()
        self.event_type = "room:user-left"


@dataclass
class MessageSent(BaseEvent):
    """A message was persisted in a room."""

    message_id: str
    room_id: str
    author_id: str

    def __post_init__(self) -> None:
        super().__post_init__()
        self.event_type = "message:sent"


@dataclass
class MessageEdited(BaseEvent):
    """A message's content was changed by its author."""

    message_id: str
    room_id: str

    def __post_init__(self) -> None:
        super().__post_init__()
        self.event_type = "message:edited"


@dataclass
class MessageDeleted(BaseEvent):
    """A message was soft-deleted by its author."""

    message_id: str
    room_id: str

    def __post_init__(self) -> None:
        super().__post_init__()
        self.event_type = "message:deleted"
