"""
Message rate limiting for RoomChat connections.

The budget is per connection, not per user, so reconnecting starts a
fresh window. Attempts are counted even when they are rejected: a client
that keeps sending while limited keeps the counter climbing until the
window rolls over.
"""

import time
from typing import Any

from ..structured_logging.enhanced_logging_config import get_logger
from .session_state import RateWindow

logger = get_logger(__name__)


class RateLimiter:
    """
    Fixed-window message rate limiter.

    Args:
        max_messages: Messages allowed per window (default: 30)
        window_seconds: Window length in seconds (default: 60)
    """

    def __init__(self, max_messages: int = 30, window_seconds: float = 60.0) -> None:
        self.max_messages = max_messages
        self.window_seconds = window_seconds

    def check_message_rate_limit(self, window: RateWindow, connection_id: str | None = None) -> bool:
        """
        Record a send attempt and decide whether it may proceed.

        Args:
            window: The connection's rate window, updated in place
            connection_id: Used for logging only

        Returns:
            bool: True if the attempt is within the limit, False if it must be rejected
        """
        current_time = time.time()
        if current_time - window.window_start >= self.window_seconds:
            window.window_start = current_time
            window.count = 0

        window.count += 1
        if window.count > self.max_messages:
            logger.warning(
                "Message rate limit exceeded",
                connection_id=connection_id,
                attempts=window.count,
                max_messages=self.max_messages,
            )
            return False
        return True

    def get_rate_limit_info(self, window: RateWindow) -> dict[str, Any]:
        current_time = time.time()
        expired = current_time - window.window_start >= self.window_seconds
        attempts = 0 if expired else window.count
        return {
            "attempts": attempts,
            "max_attempts": self.max_messages,
            "window_seconds": self.window_seconds,
            "attempts_remaining": max(0, self.max_messages - attempts),
            "reset_time": current_time if expired else window.window_start + self.window_seconds,
        }
