"""
Typing indicator auto-stop timers.

Each connection holds at most one pending timer, stored as an asyncio
Task on its session state. Arming always cancels the previous timer
first, and cancelling with no timer armed is a no-op.
"""

import asyncio
from collections.abc import Awaitable, Callable

from ..structured_logging.enhanced_logging_config import get_logger
from .session_state import ConnectionState

logger = get_logger(__name__)


class TypingTimerController:
    """
    Arms and cancels per-connection typing timers.

    Args:
        timeout_seconds: Delay before an armed timer fires
    """

    def __init__(self, timeout_seconds: float = 3.0) -> None:
        self.timeout_seconds = timeout_seconds

    def arm(self, state: ConnectionState, on_expire: Callable[[], Awaitable[None]]) -> asyncio.Task:
        """
        (Re)arm the typing timer for a connection.

        Args:
            state: The connection's session state
            on_expire: Coroutine function run when the timer fires

        Returns:
            asyncio.Task: The new timer
        """
        self.cancel(state)
        task = asyncio.create_task(self._run(state, on_expire), name="roomchat-typing-timer")
        state.typing_timer = task
        return task

    def cancel(self, state: ConnectionState) -> bool:
        """
        Cancel the pending typing timer, if any.

        Returns:
            bool: True if a timer was pending
        """
        task = state.typing_timer
        state.typing_timer = None
        if task is None:
            return False
        if task is not asyncio.current_task() and not task.done():
            task.cancel()
        return True

    async def _run(self, state: ConnectionState, on_expire: Callable[[], Awaitable[None]]) -> None:
        await asyncio.sleep(self.timeout_seconds)
        if state.typing_timer is not asyncio.current_task():
            return
        # Detach first: the expiry handler may call cancel() on this state
        state.typing_timer = None
        try:
            await on_expire()
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.error("Typing timer expiry handler failed", error=str(e), error_type=type(e).__name__)
