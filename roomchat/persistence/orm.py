"""
SQLAlchemy ORM tables for the SQL storage backend.

All tables share one DeclarativeBase so the schema can be created in a
single metadata.create_all() call.
"""

from sqlalchemy import Boolean, Column, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Shared declarative base for all RoomChat tables."""


class UserRow(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True)
    username = Column(String(64), nullable=False)
    avatar = Column(String(16), nullable=False)
    status = Column(String(16), nullable=False, default="online")
    joined_at = Column(Integer, nullable=False)
    last_seen = Column(Integer, nullable=True)

    # Usernames are unique regardless of case
    __table_args__ = (Index("uq_users_username_lower", func.lower(username), unique=True),)


class RoomRow(Base):
    __tablename__ = "rooms"

    id = Column(String(64), primary_key=True)
    name = Column(String(128), nullable=False)
    description = Column(Text, nullable=False, default="")
    created_at = Column(Integer, nullable=False)


class RoomParticipantRow(Base):
    __tablename__ = "room_participants"

    room_id = Column(String(64), ForeignKey("rooms.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)


class MessageRow(Base):
    __tablename__ = "messages"
    __table_args__ = (Index("idx_messages_room_created", "room_id", "created_at"),)

    id = Column(String(32), primary_key=True)
    room_id = Column(String(64), ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False)
    author_id = Column(String(32), ForeignKey("users.id"), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(Integer, nullable=False)
    edited_at = Column(Integer, nullable=True)
    reply_to = Column(String(32), nullable=True)
    is_deleted = Column(Boolean, nullable=False, default=False)
