"""
Connection Manager for RoomChat real-time communication.

The ConnectionManager is the session/connection registry: it owns every
live connection, the room subscription index and the user-to-connection
index, and it is the single entry point for inbound client frames. The
application container creates one per process and hands it to the
transport adapter; nothing reaches it through module globals.

Frames from one connection are handled one at a time by the transport
loop. Frames from different connections interleave at await points, so
nothing here assumes cross-connection state is unchanged across a
storage call.
"""

from collections.abc import Awaitable, Callable
from typing import Any

from anyio import CancelScope

from ..config import ChatConfig
from ..error_types import ErrorCode, ErrorMessages
from ..events import EventBus, UserDisconnected, UserStatusChanged
from ..exceptions import RoomChatError
from ..schemas.client_events import (
    ClientEventValidator,
    DeleteMessageEvent,
    EditMessageEvent,
    JoinRoomEvent,
    LeaveRoomEvent,
    SendMessageEvent,
    TypingStartEvent,
    TypingStopEvent,
    UpdateStatusEvent,
)
from ..schemas.server_events import (
    connected_event,
    error_event,
    message_deleted_event,
    message_edited_event,
    message_received_event,
    room_history_event,
    user_joined_event,
    user_left_event,
    user_stopped_typing_event,
    user_typing_event,
)
from ..services import ChatUseCases, UseCaseError
from ..structured_logging.enhanced_logging_config import get_logger, log_exception_once
from ..structured_logging.logging_context import bind_connection_context, clear_connection_context
from .message_broadcaster import MessageBroadcaster
from .rate_limiter import RateLimiter
from .room_subscription_manager import RoomSubscriptionManager
from .session_state import Connection, TransportHandle
from .typing_timers import TypingTimerController

logger = get_logger(__name__)

EventHandler = Callable[[Connection, Any], Awaitable[None]]


class ConnectionManager:
    """
    Session/connection registry and inbound event dispatcher.

    Args:
        use_cases: Business operations over storage
        event_bus: Bus for domain events; the broadcaster subscribes to status changes on it
        chat_config: Rate, typing and validation limits
    """

    def __init__(
        self,
        use_cases: ChatUseCases,
        event_bus: EventBus,
        chat_config: ChatConfig | None = None,
    ) -> None:
        config = chat_config or ChatConfig()
        self.use_cases = use_cases
        self.event_bus = event_bus
        self.validator = ClientEventValidator(config)

        self.connections: dict[str, Connection] = {}
        # user_id -> connection_id of the user's latest connection
        self.user_connections: dict[str, str] = {}

        self.room_manager = RoomSubscriptionManager()
        self.rate_limiter = RateLimiter(config.rate_limit_messages_per_minute, config.rate_limit_window_seconds)
        self.typing_timers = TypingTimerController(config.typing_timeout_seconds)
        self.broadcaster = MessageBroadcaster(self.room_manager, self._resolve_transport, use_cases.find_user_rooms)

        self._handlers: dict[type, EventHandler] = {
            JoinRoomEvent: self._handle_join_room,
            LeaveRoomEvent: self._handle_leave_room,
            SendMessageEvent: self._handle_send_message,
            EditMessageEvent: self._handle_edit_message,
            DeleteMessageEvent: self._handle_delete_message,
            TypingStartEvent: self._handle_typing_start,
            TypingStopEvent: self._handle_typing_stop,
            UpdateStatusEvent: self._handle_update_status,
        }

        self.event_bus.subscribe(UserStatusChanged, self.broadcaster.handle_status_changed)

    def _resolve_transport(self, connection_id: str) -> TransportHandle | None:
        connection = self.connections.get(connection_id)
        return connection.transport if connection else None

    def get_connection(self, connection_id: str) -> Connection | None:
        return self.connections.get(connection_id)

    def get_user_connection_id(self, user_id: str) -> str | None:
        return self.user_connections.get(user_id)

    def get_active_connection_count(self) -> int:
        return len(self.connections)

    def get_stats(self) -> dict[str, Any]:
        return {
            "active_connections": len(self.connections),
            "identified_users": len(self.user_connections),
            **self.room_manager.get_stats(),
        }

    # --- lifecycle -----------------------------------------------------

    def add_connection(self, connection_id: str, transport: TransportHandle) -> Connection:
        """
        Register a freshly opened connection with empty session state.

        Args:
            connection_id: Identifier generated by the transport adapter
            transport: Handle used to push frames to the client

        Returns:
            Connection: The registered connection
        """
        connection = Connection(connection_id=connection_id, transport=transport)
        self.connections[connection_id] = connection
        logger.info("Connection added", connection_id=connection_id, active_connections=len(self.connections))
        return connection

    async def remove_connection(self, connection_id: str) -> None:
        """
        Tear down a connection. Idempotent and never raises.

        The connection leaves the registry before any awaits, so a second
        call, and any broadcast racing with this one, no longer sees it.
        Order of side effects: typing timer cancelled, room subscription
        dropped and USER_LEFT broadcast, then the user is marked offline
        and UserDisconnected is published.

        The side effects run shielded: a transport task cancelled on close
        or at shutdown still finishes its teardown.
        """
        connection = self.connections.pop(connection_id, None)
        if connection is None:
            return

        with CancelScope(shield=True):
            await self._finish_removal(connection)

    async def _finish_removal(self, connection: Connection) -> None:
        connection_id = connection.connection_id
        state = connection.state
        self.typing_timers.cancel(state)

        room_id = state.room_id
        self.room_manager.unsubscribe_connection(connection_id)
        if state.user_id is not None and self.user_connections.get(state.user_id) == connection_id:
            del self.user_connections[state.user_id]

        if room_id is not None and state.user_id is not None:
            try:
                await self.broadcaster.broadcast_to_room(room_id, user_left_event(state.user_id, room_id))
            except Exception as e:  # pylint: disable=broad-exception-caught
                logger.error("Failed to broadcast departure", connection_id=connection_id, room_id=room_id, error=str(e))

        if state.user_id is not None:
            try:
                await self.use_cases.mark_user_offline(state.user_id)
            except Exception as e:  # pylint: disable=broad-exception-caught
                log_exception_once(
                    logger,
                    "error",
                    "Failed to mark user offline during disconnect",
                    exc=e,
                    connection_id=connection_id,
                    user_id=state.user_id,
                )
            try:
                self.event_bus.publish(UserDisconnected(user_id=state.user_id, connection_id=connection_id))
            except Exception as e:  # pylint: disable=broad-exception-caught
                logger.error("Failed to publish disconnect event", connection_id=connection_id, error=str(e))

        logger.info(
            "Connection removed",
            connection_id=connection_id,
            user_id=state.user_id,
            room_id=room_id,
            active_connections=len(self.connections),
        )

    # --- inbound frames ------------------------------------------------

    async def handle_message(self, connection_id: str, raw_frame: str | bytes) -> None:
        """
        Validate one inbound frame and dispatch it.

        Malformed frames, business failures and unexpected errors are all
        answered with an ERROR frame to the sender; the connection stays open.
        """
        connection = self.connections.get(connection_id)
        if connection is None:
            logger.warning("Frame for unknown connection", connection_id=connection_id)
            return

        state = connection.state
        bind_connection_context(connection_id, user_id=state.user_id, room_id=state.room_id)
        try:
            outcome = self.validator.parse_frame(raw_frame)
            if not outcome.ok:
                logger.debug("Rejected invalid frame", errors=outcome.messages)
                await self._send_error(connection, ErrorCode.INVALID_MESSAGE, outcome.error_message)
                return

            handler = self._handlers.get(type(outcome.event))
            if handler is None:
                logger.warning("Ignoring unknown event type", event_type=getattr(outcome.event, "type", None))
                return

            await handler(connection, outcome.event)
        except RoomChatError as e:
            log_exception_once(logger, "error", "Error handling client frame", exc=e, error_details=e.to_dict())
            await self._send_error(connection, ErrorCode.INTERNAL_ERROR, ErrorMessages.INTERNAL_ERROR)
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.error("Unexpected error handling client frame", error=str(e), exc_info=True)
            await self._send_error(connection, ErrorCode.INTERNAL_ERROR, ErrorMessages.INTERNAL_ERROR)
        finally:
            clear_connection_context()

    async def _send_error(self, connection: Connection, code: ErrorCode | str, message: str) -> None:
        await self.broadcaster.send_to_connection(connection.connection_id, error_event(code, message))

    async def _send_use_case_error(self, connection: Connection, error: UseCaseError | None) -> None:
        if error is None:
            await self._send_error(connection, ErrorCode.INTERNAL_ERROR, ErrorMessages.INTERNAL_ERROR)
            return
        await self._send_error(connection, error.code, error.message)

    async def _leave_active_room(self, connection: Connection) -> None:
        """Drop the connection's live subscription and tell the room it went away."""
        state = connection.state
        room_id = state.room_id
        self.typing_timers.cancel(state)
        state.room_id = None
        if room_id is None:
            return
        self.room_manager.unsubscribe_from_room(connection.connection_id, room_id)
        if state.user_id is not None:
            await self.broadcaster.broadcast_to_room(room_id, user_left_event(state.user_id, room_id))

    async def _handle_join_room(self, connection: Connection, event: JoinRoomEvent) -> None:
        room_id = event.payload.room_id
        result = await self.use_cases.join_room(room_id, event.payload.username)
        if not result.ok:
            await self._send_use_case_error(connection, result.error)
            return

        joined = result.value
        state = connection.state
        connection_id = connection.connection_id

        if connection_id not in self.connections:
            # Closed while the join was in flight; teardown already ran without this user
            logger.info("Connection closed during join", username=joined.user.username)
            if joined.user.id not in self.user_connections:
                await self.use_cases.mark_user_offline(joined.user.id)
            return

        if state.room_id is not None and state.room_id != room_id:
            # Switching rooms without an explicit leave
            await self._leave_active_room(connection)

        if state.user_id is not None and state.user_id != joined.user.id:
            if self.user_connections.get(state.user_id) == connection_id:
                del self.user_connections[state.user_id]

        state.set_user(joined.user.id, joined.user.username)
        state.room_id = room_id
        self.user_connections[joined.user.id] = connection_id
        self.room_manager.subscribe_to_room(connection_id, room_id)
        bind_connection_context(connection_id, user_id=state.user_id, room_id=room_id)

        rooms = await self.use_cases.get_rooms()
        await self.broadcaster.send_to_connection(connection_id, connected_event(joined.user, rooms))
        await self.broadcaster.send_to_connection(
            connection_id, room_history_event(room_id, joined.messages, joined.users)
        )
        await self.broadcaster.broadcast_to_room(
            room_id, user_joined_event(joined.user, room_id), exclude_connection_id=connection_id
        )
        logger.info("User joined room", username=joined.user.username)

    async def _handle_leave_room(self, connection: Connection, event: LeaveRoomEvent) -> None:
        state = connection.state
        if not state.is_authorized:
            return

        room_id = event.payload.room_id
        result = await self.use_cases.leave_room(state.user_id, room_id)
        if not result.ok:
            await self._send_use_case_error(connection, result.error)
            return

        if state.room_id == room_id:
            self.typing_timers.cancel(state)
            state.room_id = None
        self.room_manager.unsubscribe_from_room(connection.connection_id, room_id)
        await self.broadcaster.broadcast_to_room(
            room_id, user_left_event(state.user_id, room_id), exclude_connection_id=connection.connection_id
        )
        logger.info("User left room", left_room_id=room_id)

    async def _handle_send_message(self, connection: Connection, event: SendMessageEvent) -> None:
        state = connection.state
        if state.user_id is None or state.username is None:
            await self._send_error(connection, ErrorCode.UNAUTHORIZED, ErrorMessages.MUST_JOIN_FIRST)
            return
        if not self.rate_limiter.check_message_rate_limit(state.rate_window, connection.connection_id):
            logger.debug("Message dropped", **self.rate_limiter.get_rate_limit_info(state.rate_window))
            await self._send_error(connection, ErrorCode.RATE_LIMITED, ErrorMessages.RATE_LIMITED)
            return

        payload = event.payload
        result = await self.use_cases.send_message(payload.room_id, state.user_id, payload.content, payload.reply_to)
        if not result.ok:
            await self._send_use_case_error(connection, result.error)
            return

        # Sending a message ends the sender's typing indicator
        await self._stop_typing(connection, payload.room_id)
        await self.broadcaster.broadcast_to_room(payload.room_id, message_received_event(result.value))

    async def _handle_edit_message(self, connection: Connection, event: EditMessageEvent) -> None:
        state = connection.state
        if not state.is_authorized:
            return

        result = await self.use_cases.edit_message(event.payload.message_id, state.user_id, event.payload.content)
        if not result.ok:
            await self._send_use_case_error(connection, result.error)
            return

        if state.room_id is not None:
            message = result.value
            await self.broadcaster.broadcast_to_room(
                state.room_id, message_edited_event(message.id, message.content, message.edited_at)
            )

    async def _handle_delete_message(self, connection: Connection, event: DeleteMessageEvent) -> None:
        state = connection.state
        if not state.is_authorized:
            return

        result = await self.use_cases.delete_message(event.payload.message_id, state.user_id)
        if not result.ok:
            await self._send_use_case_error(connection, result.error)
            return

        if state.room_id is not None:
            await self.broadcaster.broadcast_to_room(state.room_id, message_deleted_event(event.payload.message_id))

    async def _handle_typing_start(self, connection: Connection, event: TypingStartEvent) -> None:
        state = connection.state
        if state.user_id is None or state.username is None:
            return

        room_id = event.payload.room_id

        async def _expire() -> None:
            await self._stop_typing(connection, room_id)

        self.typing_timers.arm(state, _expire)
        await self.broadcaster.broadcast_to_room(
            room_id,
            user_typing_event(state.user_id, state.username, room_id),
            exclude_connection_id=connection.connection_id,
        )

    async def _handle_typing_stop(self, connection: Connection, event: TypingStopEvent) -> None:
        if not connection.state.is_authorized:
            return
        await self._stop_typing(connection, event.payload.room_id)

    async def _stop_typing(self, connection: Connection, room_id: str) -> None:
        """Cancel any pending auto-stop and tell the room the user stopped typing."""
        state = connection.state
        self.typing_timers.cancel(state)
        if state.user_id is None or connection.connection_id not in self.connections:
            return
        await self.broadcaster.broadcast_to_room(
            room_id,
            user_stopped_typing_event(state.user_id, room_id),
            exclude_connection_id=connection.connection_id,
        )

    async def _handle_update_status(self, connection: Connection, event: UpdateStatusEvent) -> None:
        state = connection.state
        if not state.is_authorized:
            return

        result = await self.use_cases.update_user_status(state.user_id, event.payload.status)
        if not result.ok:
            await self._send_use_case_error(connection, result.error)
