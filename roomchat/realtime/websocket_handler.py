"""
WebSocket transport adapter for RoomChat.

Bridges a FastAPI WebSocket to the ConnectionManager: the open hook
registers the connection, every text frame is handed to handle_message in
arrival order, and the close hook always runs, whether the client hung up
or the loop failed.
"""

from fastapi import WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from ..exceptions import TransportError
from ..models import generate_id
from ..structured_logging.enhanced_logging_config import get_logger
from .connection_manager import ConnectionManager

logger = get_logger(__name__)


class WebSocketTransport:
    """Transport handle that pushes text frames over one WebSocket."""

    def __init__(self, websocket: WebSocket, connection_id: str) -> None:
        self.websocket = websocket
        self.connection_id = connection_id

    @property
    def is_open(self) -> bool:
        return (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    async def push(self, text: str) -> None:
        if not self.is_open:
            raise TransportError("WebSocket is closed", connection_id=self.connection_id)
        try:
            await self.websocket.send_text(text)
        except (RuntimeError, WebSocketDisconnect) as e:
            raise TransportError(f"WebSocket send failed: {e}", connection_id=self.connection_id) from e


async def _handle_websocket_message_loop(
    websocket: WebSocket, connection_id: str, connection_manager: ConnectionManager
) -> None:
    """Feed inbound frames to the registry until the client goes away."""
    while True:
        try:
            data = await websocket.receive_text()
        except WebSocketDisconnect as e:
            logger.info("WebSocket disconnected", connection_id=connection_id, close_code=e.code)
            break
        except RuntimeError as e:
            error_message = str(e)
            if "WebSocket is not connected" in error_message or 'Need to call "accept" first' in error_message:
                logger.warning("WebSocket connection lost", connection_id=connection_id, error=error_message)
                break
            raise
        except KeyError:
            # Binary frames carry no "text" entry
            logger.warning("Ignoring non-text frame", connection_id=connection_id)
            continue

        await connection_manager.handle_message(connection_id, data)


async def _cleanup_connection(connection_id: str, connection_manager: ConnectionManager) -> None:
    try:
        await connection_manager.remove_connection(connection_id)
    except Exception as e:  # pylint: disable=broad-exception-caught
        logger.error("Error removing connection", connection_id=connection_id, error=str(e))


async def handle_websocket_connection(websocket: WebSocket, connection_manager: ConnectionManager) -> None:
    """
    Handle one WebSocket connection for its whole lifetime.

    Args:
        websocket: The WebSocket connection, not yet accepted
        connection_manager: Registry that owns the session
    """
    await websocket.accept()
    connection_id = generate_id(12)
    connection_manager.add_connection(connection_id, WebSocketTransport(websocket, connection_id))

    try:
        await _handle_websocket_message_loop(websocket, connection_id, connection_manager)
    except Exception as e:  # pylint: disable=broad-exception-caught
        logger.error("WebSocket loop failed", connection_id=connection_id, error=str(e), exc_info=True)
    finally:
        await _cleanup_connection(connection_id, connection_manager)
