"""
Exception hierarchy for the RoomChat server.

Business-rule failures (unknown room, editing someone else's message) are
not exceptions: the use-case layer returns them as result values. The
classes here cover infrastructure faults in storage and in the client
transport.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


@dataclass
class ErrorContext:
    """Contextual information attached to an error for logging."""

    connection_id: str | None = None
    user_id: str | None = None
    room_id: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert context to dictionary for logging."""
        return {
            "connection_id": self.connection_id,
            "user_id": self.user_id,
            "room_id": self.room_id,
            "timestamp": self.timestamp.isoformat(),
            "metadata": self.metadata,
        }


class RoomChatError(Exception):
    """
    Base exception for all RoomChat errors.

    Carries an ErrorContext and a details dict so handlers can log the
    failure with structure.
    """

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()
        self.details = details or {}
        self.already_logged = False

    def mark_logged(self) -> None:
        self.already_logged = True

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for API responses and logs."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context.to_dict(),
            "details": self.details,
        }


class StorageError(RoomChatError):
    """A storage backend operation failed."""

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        operation: str = "unknown",
        table: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, context, **kwargs)
        self.operation = operation
        self.table = table
        self.details["operation"] = operation
        if table:
            self.details["table"] = table


class DuplicateUsernameError(StorageError):
    """A user with the same case-insensitive username already exists."""

    def __init__(self, username: str, **kwargs: Any):
        super().__init__(
            f"Username already exists: {username}",
            ErrorContext(metadata={"username": username}),
            operation="create",
            table="users",
            **kwargs,
        )
        self.username = username


class TransportError(RoomChatError):
    """Pushing a frame to a client transport failed."""

    def __init__(self, message: str, connection_id: str | None = None, **kwargs: Any):
        super().__init__(message, ErrorContext(connection_id=connection_id), **kwargs)
        self.connection_id = connection_id


def create_error_context(**kwargs: Any) -> ErrorContext:
    """
    Create an error context with the given parameters.

    Unknown keyword arguments are stored in the context metadata.
    """
    known = {key: kwargs.pop(key) for key in ("connection_id", "user_id", "room_id") if key in kwargs}
    return ErrorContext(**known, metadata=kwargs)
