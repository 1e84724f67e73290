"""
Room API endpoints for the RoomChat server.

Read-only room listing and paged message history. Both go through the
use-case layer held by the application container.
"""

from typing import Any

from fastapi import APIRouter, HTTPException, Query, Request

from ..error_types import ErrorCode
from ..services import ChatUseCases
from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)

room_router = APIRouter(prefix="/api/rooms", tags=["rooms"])


def _get_use_cases(request: Request) -> ChatUseCases:
    container = getattr(request.app.state, "container", None)
    use_cases = getattr(container, "use_cases", None)
    if use_cases is None:
        raise HTTPException(status_code=503, detail="Service temporarily unavailable")
    return use_cases


@room_router.get("")
async def list_rooms(request: Request) -> dict[str, Any]:
    """List every room with its participant count."""
    rooms = await _get_use_cases(request).get_rooms()
    return {"rooms": [room.to_wire() for room in rooms]}


@room_router.get("/{room_id}/history")
async def get_room_history(
    request: Request,
    room_id: str,
    limit: int = Query(50, ge=1, le=200, description="Maximum number of messages to return"),
    before: int | None = Query(None, description="Only messages created before this epoch-ms timestamp"),
) -> dict[str, Any]:
    """
    Page backwards through a room's message history.

    Returns messages oldest first, the room's online users and whether
    older messages remain.
    """
    result = await _get_use_cases(request).get_room_history(room_id, limit, before)
    if not result.ok:
        code = ErrorCode.coerce(result.error.code if result.error else None)
        logger.info("Room history request rejected", room_id=room_id, code=code.value)
        status_code = 404 if code == ErrorCode.ROOM_NOT_FOUND else 400
        message = result.error.message if result.error else "Request failed"
        raise HTTPException(status_code=status_code, detail={"code": code.value, "message": message})
    return result.value.to_wire()
