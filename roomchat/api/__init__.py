"""
API module for RoomChat.

REST endpoints for rooms and health, and the WebSocket endpoint.
"""

from .health import health_router
from .real_time import realtime_alias_router, realtime_router
from .rooms import room_router

__all__ = ["health_router", "realtime_alias_router", "realtime_router", "room_router"]
