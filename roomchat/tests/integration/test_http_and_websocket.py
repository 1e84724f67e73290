"""
Integration tests for the FastAPI surface.

The app runs with its real lifespan and container on the in-memory
backend; TestClient drives both the REST routes and the WebSocket
endpoints.
"""

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from roomchat.app.factory import create_app
from roomchat.config import AppConfig, DatabaseConfig
from roomchat.tests.fixtures.transports import frame

pytestmark = pytest.mark.integration


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    app = create_app(AppConfig(database=DatabaseConfig(backend="memory")))
    with TestClient(app) as test_client:
        yield test_client


def _join(ws, username, room_id="general"):
    ws.send_text(frame("JOIN_ROOM", roomId=room_id, username=username))
    connected = ws.receive_json()
    history = ws.receive_json()
    assert connected["type"] == "CONNECTED"
    assert history["type"] == "ROOM_HISTORY"
    return connected, history


class TestRestApi:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert isinstance(body["timestamp"], int)

    def test_stats(self, client):
        response = client.get("/api/stats")
        assert response.status_code == 200
        body = response.json()
        assert body["initialized"] is True
        assert body["realtime"]["active_connections"] == 0

    def test_list_rooms(self, client):
        response = client.get("/api/rooms")
        assert response.status_code == 200
        rooms = response.json()["rooms"]
        assert {room["id"] for room in rooms} == {"general", "random", "tech"}
        assert all(room["participantCount"] == 0 for room in rooms)

    def test_history_of_unknown_room(self, client):
        response = client.get("/api/rooms/nowhere/history")
        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "ROOM_NOT_FOUND"

    def test_history_limit_validation(self, client):
        assert client.get("/api/rooms/general/history", params={"limit": 0}).status_code == 422
        assert client.get("/api/rooms/general/history", params={"limit": 201}).status_code == 422

    def test_empty_history(self, client):
        response = client.get("/api/rooms/general/history")
        assert response.json() == {"messages": [], "users": [], "hasMore": False}


class TestWebSocket:
    def test_chat_over_both_paths(self, client):
        """A client on /api/ws and one on /ws share a room."""
        with client.websocket_connect("/api/ws") as alice, client.websocket_connect("/ws") as bob:
            connected, history = _join(alice, "alice")
            assert connected["payload"]["user"]["username"] == "alice"
            assert history["payload"]["messages"] == []

            _join(bob, "bob")
            assert alice.receive_json()["type"] == "USER_JOINED"

            bob.send_text(frame("SEND_MESSAGE", roomId="general", content="hello"))
            assert alice.receive_json()["type"] == "USER_STOPPED_TYPING"
            received = alice.receive_json()
            assert received["type"] == "MESSAGE_RECEIVED"
            assert received["payload"]["message"]["content"] == "hello"
            assert bob.receive_json()["type"] == "MESSAGE_RECEIVED"

            history = client.get("/api/rooms/general/history").json()
            assert [m["content"] for m in history["messages"]] == ["hello"]
            assert sorted(u["username"] for u in history["users"]) == ["alice", "bob"]

    @pytest.mark.timeout(10)
    def test_departure_is_broadcast(self, client):
        with client.websocket_connect("/api/ws") as alice:
            _join(alice, "alice")
            with client.websocket_connect("/api/ws") as bob:
                _join(bob, "bob")
                bob_id = alice.receive_json()["payload"]["user"]["id"]

            left = alice.receive_json()
            assert left == {"type": "USER_LEFT", "payload": {"userId": bob_id, "roomId": "general"}}

    def test_invalid_frames_keep_connection_open(self, client):
        with client.websocket_connect("/api/ws") as ws:
            ws.send_text("{not json")
            assert ws.receive_json() == {
                "type": "ERROR",
                "payload": {"code": "INVALID_MESSAGE", "message": "Invalid JSON"},
            }

            ws.send_text(frame("SEND_MESSAGE", roomId="general", content="too early"))
            error = ws.receive_json()
            assert error["payload"] == {"code": "UNAUTHORIZED", "message": "Must join a room first"}

            _join(ws, "alice")

    def test_join_unknown_room(self, client):
        with client.websocket_connect("/api/ws") as ws:
            ws.send_text(frame("JOIN_ROOM", roomId="nowhere", username="alice"))
            error = ws.receive_json()
            assert error["type"] == "ERROR"
            assert error["payload"]["code"] == "ROOM_NOT_FOUND"
