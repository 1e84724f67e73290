"""
Tests for inbound client event validation.

The validator never raises on bad input; it returns the list of
violation messages that the registry echoes back to the client.
"""

import json

import pytest

from roomchat.config import ChatConfig
from roomchat.models import UserStatus
from roomchat.schemas.client_events import (
    ClientEventValidator,
    EditMessageEvent,
    JoinRoomEvent,
    SendMessageEvent,
    TypingStartEvent,
    UpdateStatusEvent,
    validate_client_event,
)


@pytest.fixture
def validator():
    return ClientEventValidator(ChatConfig())


class TestJoinRoom:
    def test_valid_join(self, validator):
        outcome = validator.validate({"type": "JOIN_ROOM", "payload": {"roomId": "general", "username": "alice_01"}})
        assert outcome.ok is True
        assert isinstance(outcome.event, JoinRoomEvent)
        assert outcome.event.payload.room_id == "general"
        assert outcome.event.payload.username == "alice_01"

    @pytest.mark.parametrize(
        ("username", "message"),
        [
            ("a", "Username must be at least 2 characters"),
            ("a" * 31, "Username must be at most 30 characters"),
            ("bad name", "Username can only contain letters, numbers, underscores, and hyphens"),
            ("émile", "Username can only contain letters, numbers, underscores, and hyphens"),
        ],
    )
    def test_invalid_usernames(self, validator, username, message):
        outcome = validator.validate({"type": "JOIN_ROOM", "payload": {"roomId": "general", "username": username}})
        assert outcome.ok is False
        assert outcome.messages == [message]

    def test_username_bounds_follow_config(self):
        """Test username limits come from ChatConfig."""
        validator = ClientEventValidator(ChatConfig(min_username_length=4, max_username_length=5))
        outcome = validator.validate({"type": "JOIN_ROOM", "payload": {"roomId": "general", "username": "bob"}})
        assert outcome.messages == ["Username must be at least 4 characters"]

    def test_room_id_length(self, validator):
        outcome = validator.validate({"type": "JOIN_ROOM", "payload": {"roomId": "x" * 51, "username": "alice"}})
        assert outcome.ok is False

    def test_missing_payload_fields(self, validator):
        outcome = validator.validate({"type": "JOIN_ROOM", "payload": {}})
        assert outcome.ok is False
        assert len(outcome.messages) == 2
        assert outcome.error_message == ", ".join(outcome.messages)


class TestSendMessage:
    def test_content_is_trimmed(self, validator):
        outcome = validator.validate({"type": "SEND_MESSAGE", "payload": {"roomId": "general", "content": "  hi \n"}})
        assert isinstance(outcome.event, SendMessageEvent)
        assert outcome.event.payload.content == "hi"
        assert outcome.event.payload.reply_to is None

    def test_reply_to(self, validator):
        outcome = validator.validate(
            {"type": "SEND_MESSAGE", "payload": {"roomId": "general", "content": "yes", "replyTo": "m1"}}
        )
        assert outcome.event.payload.reply_to == "m1"

    def test_blank_content(self, validator):
        outcome = validator.validate({"type": "SEND_MESSAGE", "payload": {"roomId": "general", "content": "   "}})
        assert outcome.messages == ["Message cannot be empty"]

    def test_content_length_boundary(self, validator):
        """Test 2000 characters is accepted and 2001 rejected."""
        ok = validator.validate({"type": "SEND_MESSAGE", "payload": {"roomId": "general", "content": "a" * 2000}})
        too_long = validator.validate(
            {"type": "SEND_MESSAGE", "payload": {"roomId": "general", "content": "a" * 2001}}
        )
        assert ok.ok is True
        assert too_long.messages == ["Message cannot exceed 2000 characters"]

    def test_length_measured_after_trim(self, validator):
        content = " " * 10 + "a" * 2000 + " " * 10
        outcome = validator.validate({"type": "SEND_MESSAGE", "payload": {"roomId": "general", "content": content}})
        assert outcome.ok is True

    def test_edit_uses_same_content_rules(self, validator):
        outcome = validator.validate({"type": "EDIT_MESSAGE", "payload": {"messageId": "m1", "content": ""}})
        assert outcome.messages == ["Message cannot be empty"]
        outcome = validator.validate({"type": "EDIT_MESSAGE", "payload": {"messageId": "m1", "content": " x "}})
        assert isinstance(outcome.event, EditMessageEvent)
        assert outcome.event.payload.content == "x"


class TestOtherEvents:
    def test_typing(self, validator):
        outcome = validator.validate({"type": "TYPING_START", "payload": {"roomId": "general"}})
        assert isinstance(outcome.event, TypingStartEvent)

    @pytest.mark.parametrize("status", ["online", "away", "offline"])
    def test_status_values(self, validator, status):
        outcome = validator.validate({"type": "UPDATE_STATUS", "payload": {"status": status}})
        assert isinstance(outcome.event, UpdateStatusEvent)
        assert outcome.event.payload.status == UserStatus(status)

    def test_unknown_status(self, validator):
        outcome = validator.validate({"type": "UPDATE_STATUS", "payload": {"status": "busy"}})
        assert outcome.ok is False

    def test_unknown_type(self, validator):
        outcome = validator.validate({"type": "SHOUT", "payload": {}})
        assert outcome.ok is False
        assert outcome.messages

    def test_non_object(self, validator):
        assert validator.validate([1, 2, 3]).ok is False
        assert validator.validate(None).ok is False

    def test_extra_payload_fields_ignored(self, validator):
        outcome = validator.validate({"type": "DELETE_MESSAGE", "payload": {"messageId": "m1", "force": True}})
        assert outcome.ok is True


class TestParseFrame:
    def test_invalid_json(self, validator):
        outcome = validator.parse_frame("{nope")
        assert outcome.messages == ["Invalid JSON"]

    def test_deeply_nested_json_is_invalid(self, validator):
        raw = "[" * 5000 + "]" * 5000
        assert len(raw) < ChatConfig().max_frame_bytes
        outcome = validator.parse_frame(raw)
        assert outcome.ok is False
        assert outcome.messages == ["Invalid JSON"]

    def test_bytes_frame(self, validator):
        raw = json.dumps({"type": "TYPING_STOP", "payload": {"roomId": "general"}}).encode("utf-8")
        assert validator.parse_frame(raw).ok is True

    def test_frame_size_limit(self):
        validator = ClientEventValidator(ChatConfig(max_frame_bytes=64))
        outcome = validator.parse_frame(json.dumps({"type": "SEND_MESSAGE", "payload": {"content": "a" * 100}}))
        assert outcome.messages == ["Message frame too large"]


def test_validate_client_event_helper():
    outcome = validate_client_event({"type": "LEAVE_ROOM", "payload": {"roomId": "general"}})
    assert outcome.ok is True
