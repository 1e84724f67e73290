"""
Room subscription management for RoomChat.

Tracks which live connections are subscribed to which room. A connection
is subscribed to at most one room at a time; subscribing it to a new room
drops the old subscription in the same step. The index lives in process
memory only and starts empty on every restart.
"""

from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)


class RoomSubscriptionManager:
    """
    Room -> connection subscription index.

    Only the connection registry mutates this index; the broadcast router
    reads it through get_room_subscribers(), which returns a copy.
    """

    def __init__(self) -> None:
        # room_id -> set of connection ids
        self.room_subscriptions: dict[str, set[str]] = {}
        # connection_id -> room_id, the reverse view
        self._connection_rooms: dict[str, str] = {}

    def subscribe_to_room(self, connection_id: str, room_id: str) -> str | None:
        """
        Subscribe a connection to a room, leaving any previous room.

        Args:
            connection_id: The connection's ID
            room_id: The room's ID

        Returns:
            str | None: The room the connection was previously subscribed to, if it differs
        """
        previous = self._connection_rooms.get(connection_id)
        if previous == room_id:
            return None
        if previous is not None:
            self._discard(connection_id, previous)

        self.room_subscriptions.setdefault(room_id, set()).add(connection_id)
        self._connection_rooms[connection_id] = room_id
        logger.debug("Connection subscribed to room", connection_id=connection_id, room_id=room_id)
        return previous

    def unsubscribe_from_room(self, connection_id: str, room_id: str) -> bool:
        """
        Unsubscribe a connection from a room.

        Returns:
            bool: True if the connection was subscribed to that room
        """
        if self._connection_rooms.get(connection_id) != room_id:
            return False
        self._discard(connection_id, room_id)
        logger.debug("Connection unsubscribed from room", connection_id=connection_id, room_id=room_id)
        return True

    def unsubscribe_connection(self, connection_id: str) -> str | None:
        """Drop whatever subscription the connection holds; returns that room."""
        room_id = self._connection_rooms.get(connection_id)
        if room_id is not None:
            self._discard(connection_id, room_id)
        return room_id

    def _discard(self, connection_id: str, room_id: str) -> None:
        subscribers = self.room_subscriptions.get(room_id)
        if subscribers is not None:
            subscribers.discard(connection_id)
            if not subscribers:
                del self.room_subscriptions[room_id]
        self._connection_rooms.pop(connection_id, None)

    def get_room_subscribers(self, room_id: str) -> set[str]:
        return set(self.room_subscriptions.get(room_id, ()))

    def get_connection_room(self, connection_id: str) -> str | None:
        return self._connection_rooms.get(connection_id)

    def get_stats(self) -> dict[str, int]:
        return {
            "rooms_with_subscribers": len(self.room_subscriptions),
            "subscribed_connections": len(self._connection_rooms),
        }
