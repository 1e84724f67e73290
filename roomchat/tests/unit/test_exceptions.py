"""Tests for the exception hierarchy and the wire error codes."""

from roomchat.error_types import ErrorCode
from roomchat.exceptions import (
    DuplicateUsernameError,
    RoomChatError,
    StorageError,
    TransportError,
    create_error_context,
)


def test_error_code_coerce():
    assert ErrorCode.coerce(ErrorCode.RATE_LIMITED) is ErrorCode.RATE_LIMITED
    assert ErrorCode.coerce("MESSAGE_NOT_FOUND") is ErrorCode.MESSAGE_NOT_FOUND
    assert ErrorCode.coerce("DATABASE_ERROR") is ErrorCode.INTERNAL_ERROR
    assert ErrorCode.coerce(None) is ErrorCode.INTERNAL_ERROR


def test_create_error_context_splits_metadata():
    context = create_error_context(connection_id="c1", room_id="general", attempt=2)
    assert context.connection_id == "c1"
    assert context.room_id == "general"
    assert context.user_id is None
    assert context.metadata == {"attempt": 2}


def test_storage_error_details():
    error = StorageError("boom", operation="find_by_id", table="users")
    assert isinstance(error, RoomChatError)
    data = error.to_dict()
    assert data["error_type"] == "StorageError"
    assert data["details"] == {"operation": "find_by_id", "table": "users"}
    assert data["context"]["connection_id"] is None


def test_transport_error_carries_connection():
    error = TransportError("closed", connection_id="c9")
    assert error.connection_id == "c9"
    assert error.context.connection_id == "c9"
    assert error.already_logged is False
    error.mark_logged()
    assert error.already_logged is True


def test_duplicate_username_is_a_storage_error():
    error = DuplicateUsernameError("Alice")
    assert isinstance(error, StorageError)
    assert error.username == "Alice"
    assert error.details == {"operation": "create", "table": "users"}
    assert error.context.metadata == {"username": "Alice"}
