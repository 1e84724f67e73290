"""Tests for outbound server event builders and their exact wire shape."""

from roomchat.error_types import ErrorCode
from roomchat.models import MessageAuthor, MessageDTO, ReplyPreview, RoomInfo, User
from roomchat.schemas.server_events import (
    ServerEventType,
    connected_event,
    error_event,
    message_deleted_event,
    message_edited_event,
    message_received_event,
    room_history_event,
    serialize_event,
    user_joined_event,
    user_left_event,
    user_status_changed_event,
    user_stopped_typing_event,
    user_typing_event,
)


def _user(**overrides):
    data = {"id": "u1", "username": "alice", "avatar": "#FF6B6B", "status": "online", "joined_at": 1000}
    data.update(overrides)
    return User(**data)


def _dto(**overrides):
    data = {
        "id": "m1",
        "room_id": "general",
        "author": MessageAuthor(id="u1", username="alice", avatar="#FF6B6B"),
        "content": "hi",
        "created_at": 2000,
    }
    data.update(overrides)
    return MessageDTO(**data)


def test_server_event_types_closed_set():
    assert {member.value for member in ServerEventType} == {
        "CONNECTED",
        "ROOM_HISTORY",
        "USER_JOINED",
        "USER_LEFT",
        "MESSAGE_RECEIVED",
        "MESSAGE_EDITED",
        "MESSAGE_DELETED",
        "USER_TYPING",
        "USER_STOPPED_TYPING",
        "USER_STATUS_CHANGED",
        "ERROR",
    }


def test_connected_event_shape():
    room = RoomInfo(id="general", name="General", description="Welcome", participant_count=1)
    event = connected_event(_user(), [room])
    assert serialize_event(event) == (
        '{"type":"CONNECTED","payload":{"user":{"id":"u1","username":"alice","avatar":"#FF6B6B",'
        '"status":"online","joinedAt":1000},"rooms":[{"id":"general","name":"General",'
        '"description":"Welcome","participantCount":1}]}}'
    )


def test_user_wire_includes_last_seen_when_set():
    assert _user(last_seen=5000).to_wire()["lastSeen"] == 5000


def test_message_received_shape():
    event = message_received_event(_dto())
    assert serialize_event(event) == (
        '{"type":"MESSAGE_RECEIVED","payload":{"message":{"id":"m1","roomId":"general",'
        '"author":{"id":"u1","username":"alice","avatar":"#FF6B6B"},"content":"hi","createdAt":2000}}}'
    )


def test_message_with_reply_and_edit():
    dto = _dto(
        reply_to=ReplyPreview(id="m0", author_username="bob", content_preview="earlier"),
        edited_at=3000,
    )
    wire = message_received_event(dto)["payload"]["message"]
    assert list(wire) == ["id", "roomId", "author", "content", "createdAt", "replyTo", "editedAt"]
    assert wire["replyTo"] == {"id": "m0", "authorUsername": "bob", "contentPreview": "earlier"}


def test_room_history_shape():
    event = room_history_event("general", [_dto()], [_user()])
    assert list(event["payload"]) == ["roomId", "messages", "users"]
    assert event["payload"]["messages"][0]["id"] == "m1"


def test_simple_events():
    assert user_joined_event(_user(), "general")["payload"]["roomId"] == "general"
    assert user_left_event("u1", "general") == {"type": "USER_LEFT", "payload": {"userId": "u1", "roomId": "general"}}
    assert message_edited_event("m1", "new", 9) == {
        "type": "MESSAGE_EDITED",
        "payload": {"messageId": "m1", "content": "new", "editedAt": 9},
    }
    assert message_deleted_event("m1") == {"type": "MESSAGE_DELETED", "payload": {"messageId": "m1"}}
    assert user_typing_event("u1", "alice", "general")["payload"] == {
        "userId": "u1",
        "username": "alice",
        "roomId": "general",
    }
    assert user_stopped_typing_event("u1", "general")["type"] == "USER_STOPPED_TYPING"
    assert user_status_changed_event("u1", "away")["payload"] == {"userId": "u1", "status": "away"}


def test_error_event_coerces_unknown_codes():
    assert error_event(ErrorCode.ROOM_NOT_FOUND, "gone")["payload"] == {"code": "ROOM_NOT_FOUND", "message": "gone"}
    assert error_event("DATABASE_ERROR", "boom")["payload"]["code"] == "INTERNAL_ERROR"
    assert error_event("RATE_LIMITED", "slow")["payload"]["code"] == "RATE_LIMITED"
