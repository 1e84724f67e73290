"""
Context management utilities for structured logging.

Binds per-connection context (connection id, user id, room id) into
structlog's context variables so that every log entry emitted while a
frame is being handled carries the identity of the connection that sent it.
"""

from typing import Any

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars, unbind_contextvars

_CONNECTION_KEYS = ("connection_id", "user_id", "room_id")


def bind_connection_context(
    connection_id: str,
    user_id: str | None = None,
    room_id: str | None = None,
    **kwargs: Any,
) -> None:
    """
    Bind connection context to the current logging context.

    Args:
        connection_id: Transport connection identifier
        user_id: User ID if the connection has joined a room
        room_id: Active room ID if any
        **kwargs: Additional context variables
    """
    context_vars = {
        "connection_id": connection_id,
        "user_id": user_id,
        "room_id": room_id,
        **kwargs,
    }

    # Remove None values
    context_vars = {k: v for k, v in context_vars.items() if v is not None}

    bind_contextvars(**context_vars)


def clear_connection_context() -> None:
    """Remove the connection keys from the current logging context."""
    unbind_contextvars(*_CONNECTION_KEYS)


def clear_all_context() -> None:
    """Clear every bound context variable."""
    clear_contextvars()


def get_current_context() -> dict[str, Any]:
    """Get the current logging context."""
    try:
        return structlog.contextvars.get_contextvars()
    except (AttributeError, KeyError):
        return {}
