"""
Repository protocols for the RoomChat persistence layer.

The use-case layer depends only on these protocols; the in-memory and
SQLAlchemy backends both implement them.
"""

# pylint: disable=unnecessary-ellipsis

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from roomchat.models import Message, Room, User


class UserRepositoryProtocol(Protocol):
    """Protocol for user persistence operations."""

    async def find_by_id(self, user_id: str) -> User | None:
        """Get a user by ID."""
        ...

    async def find_by_username(self, username: str) -> User | None:
        """Get a user by username (case-insensitive)."""
        ...

    async def create(self, user: User) -> User:
        """Persist a new user."""
        ...

    async def update_status(self, user_id: str, status: str) -> User | None:
        """Set a user's presence status; returns the updated user or None if unknown."""
        ...

    async def update_last_seen(self, user_id: str, last_seen: int) -> None:
        """Stamp the user's last-seen time."""
        ...

    async def find_many(self, user_ids: list[str]) -> list[User]:
        """Get every known user among the given IDs."""
        ...


class RoomRepositoryProtocol(Protocol):
    """Protocol for room persistence operations."""

    async def find_by_id(self, room_id: str) -> Room | None:
        """Get a room, including its participant set."""
        ...

    async def find_all(self) -> list[Room]:
        """List all rooms."""
        ...

    async def create(self, room: Room) -> Room:
        """Persist a new room."""
        ...

    async def add_participant(self, room_id: str, user_id: str) -> None:
        """Add a user to a room's participant set."""
        ...

    async def remove_participant(self, room_id: str, user_id: str) -> None:
        """Remove a user from a room's participant set."""
        ...

    async def find_rooms_for_user(self, user_id: str) -> list[Room]:
        """Every room whose participant set contains the user."""
        ...


class MessageRepositoryProtocol(Protocol):
    """Protocol for message persistence operations."""

    async def find_by_id(self, message_id: str, include_deleted: bool = False) -> Message | None:
        """Get a message; deleted messages only when include_deleted is set."""
        ...

    async def find_by_room(self, room_id: str, limit: int = 50, before: int | None = None) -> list[Message]:
        """Newest non-deleted messages of a room, returned oldest first."""
        ...

    async def create(self, message: Message) -> Message:
        """Persist a new message."""
        ...

    async def update_content(self, message_id: str, content: str, edited_at: int) -> Message | None:
        """Replace a message's content and stamp the edit time."""
        ...

    async def soft_delete(self, message_id: str) -> bool:
        """Tombstone a message; returns False if it did not exist."""
        ...
