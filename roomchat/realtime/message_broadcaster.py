"""
Room broadcasting for RoomChat.

Delivers one server event to every connection subscribed to a room. The
event is serialized once and pushed to all targets concurrently; a push
that fails (half-closed socket, connection already gone) is logged and
counted but never aborts delivery to the others or reaches the caller.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from ..events import UserStatusChanged
from ..schemas.server_events import serialize_event, user_status_changed_event
from ..structured_logging.enhanced_logging_config import get_logger

if TYPE_CHECKING:
    from .room_subscription_manager import RoomSubscriptionManager
    from .session_state import TransportHandle

logger = get_logger(__name__)


class MessageBroadcaster:
    """
    Broadcasts server events to rooms and single connections.

    Args:
        room_manager: Subscription index, read-only from here
        resolve_transport: Looks up a live connection's transport handle
        find_user_rooms: Resolves every room a user participates in, for status fan-out
    """

    def __init__(
        self,
        room_manager: "RoomSubscriptionManager",
        resolve_transport: Callable[[str], "TransportHandle | None"],
        find_user_rooms: Callable[[str], Awaitable[list[str]]] | None = None,
    ) -> None:
        self.room_manager = room_manager
        self.resolve_transport = resolve_transport
        self.find_user_rooms = find_user_rooms

    async def _push(self, connection_id: str, text: str) -> bool:
        transport = self.resolve_transport(connection_id)
        if transport is None:
            # Disconnected between subscriber lookup and delivery
            logger.debug("Skipping delivery to vanished connection", connection_id=connection_id)
            return False
        try:
            await transport.push(text)
            return True
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.warning(
                "Failed to deliver event",
                connection_id=connection_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

    async def broadcast_to_room(
        self,
        room_id: str,
        event: dict[str, Any],
        exclude_connection_id: str | None = None,
    ) -> dict[str, Any]:
        """
        Broadcast an event to all connections subscribed to a room.

        An unknown or empty room is a no-op.

        Args:
            room_id: The room's ID
            event: The server event to send
            exclude_connection_id: Connection that must not receive the event

        Returns:
            dict: Broadcast delivery statistics
        """
        targets = [cid for cid in self.room_manager.get_room_subscribers(room_id) if cid != exclude_connection_id]
        stats: dict[str, Any] = {
            "room_id": room_id,
            "event_type": event.get("type"),
            "total_targets": len(targets),
            "successful_deliveries": 0,
            "failed_deliveries": 0,
        }
        if not targets:
            return stats

        text = serialize_event(event)
        results = await asyncio.gather(*[self._push(cid, text) for cid in targets])
        stats["successful_deliveries"] = sum(1 for delivered in results if delivered)
        stats["failed_deliveries"] = len(results) - stats["successful_deliveries"]

        logger.debug("Broadcast to room", **stats)
        return stats

    async def send_to_connection(self, connection_id: str, event: dict[str, Any]) -> bool:
        """Unicast an event to one connection; returns whether it was delivered."""
        return await self._push(connection_id, serialize_event(event))

    async def handle_status_changed(self, event: UserStatusChanged) -> None:
        """
        Fan a status change out to every room the user participates in.

        Subscribed to UserStatusChanged on the event bus. Each room is
        broadcast to independently.
        """
        if self.find_user_rooms is None:
            return
        try:
            room_ids = await self.find_user_rooms(event.user_id)
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.error("Failed to resolve rooms for status change", user_id=event.user_id, error=str(e))
            return

        server_event = user_status_changed_event(event.user_id, event.status)
        for room_id in room_ids:
            await self.broadcast_to_room(room_id, server_event)
