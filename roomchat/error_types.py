"""
Centralized error codes for RoomChat.

ErrorCode is the closed set of codes a client may see in an ERROR frame.
Codes produced elsewhere (use cases, storage) are coerced into this set
before they reach the wire.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes carried by ERROR server events."""

    INVALID_MESSAGE = "INVALID_MESSAGE"
    ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    MESSAGE_NOT_FOUND = "MESSAGE_NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    RATE_LIMITED = "RATE_LIMITED"
    MESSAGE_TOO_LONG = "MESSAGE_TOO_LONG"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    @classmethod
    def coerce(cls, value: Any) -> "ErrorCode":
        """Map any code onto the closed set, falling back to INTERNAL_ERROR."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.INTERNAL_ERROR


class ErrorMessages:  # pylint: disable=too-few-public-methods
    """Fixed human-readable error texts sent to clients."""

    INVALID_JSON = "Invalid JSON"
    FRAME_TOO_LARGE = "Message frame too large"
    MUST_JOIN_FIRST = "Must join a room first"
    RATE_LIMITED = "Too many messages. Please slow down."
    INTERNAL_ERROR = "An internal error occurred"
    ROOM_NOT_FOUND = "Room not found"
    USER_NOT_FOUND = "User not found"
    MESSAGE_NOT_FOUND = "Message not found"
    NOT_MESSAGE_AUTHOR = "You can only modify your own messages"
