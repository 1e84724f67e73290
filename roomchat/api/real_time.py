"""
Real-time communication API endpoints for the RoomChat server.

This module exposes the WebSocket endpoint at /api/ws, and at /ws for
clients that connect to the bare path.
"""

from fastapi import APIRouter, WebSocket

from ..realtime.connection_manager import ConnectionManager
from ..realtime.websocket_handler import handle_websocket_connection
from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)

realtime_router = APIRouter(prefix="/api", tags=["realtime"])
realtime_alias_router = APIRouter(tags=["realtime"])


def _resolve_connection_manager(websocket: WebSocket) -> ConnectionManager | None:
    container = getattr(websocket.app.state, "container", None)
    return getattr(container, "connection_manager", None)


async def _serve_websocket(websocket: WebSocket) -> None:
    connection_manager = _resolve_connection_manager(websocket)
    if connection_manager is None:
        # Must accept before closing with a reason
        await websocket.accept()
        await websocket.close(code=1013, reason="Service temporarily unavailable")
        logger.warning("Rejected WebSocket connection, services not initialized")
        return
    await handle_websocket_connection(websocket, connection_manager)


@realtime_router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    """WebSocket endpoint for room chat."""
    await _serve_websocket(websocket)


@realtime_alias_router.websocket("/ws")
async def websocket_alias_endpoint(websocket: WebSocket) -> None:
    await _serve_websocket(websocket)
