"""SQLAlchemy-backed repositories."""

from .message_repository import MessageRepository
from .room_repository import RoomRepository
from .user_repository import UserRepository

__all__ = ["MessageRepository", "RoomRepository", "UserRepository"]
