"""
Real-time layer: connection registry, room broadcasting, rate limiting,
typing timers and the WebSocket transport adapter.
"""

from .connection_manager import ConnectionManager
from .message_broadcaster import MessageBroadcaster
from .rate_limiter import RateLimiter
from .room_subscription_manager import RoomSubscriptionManager
from .session_state import Connection, ConnectionState, RateWindow, TransportHandle
from .typing_timers import TypingTimerController

__all__ = [
    "Connection",
    "ConnectionManager",
    "ConnectionState",
    "MessageBroadcaster",
    "RateLimiter",
    "RateWindow",
    "RoomSubscriptionManager",
    "TransportHandle",
    "TypingTimerController",
]
