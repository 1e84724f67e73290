"""
Per-connection session state.

A Connection exists from transport open to transport close. Its
ConnectionState fills in when the client joins a room; user_id and
username are set together, and room_id is only ever set alongside them.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Protocol


class TransportHandle(Protocol):
    """Anything that can push a serialized frame to one client."""

    async def push(self, text: str) -> None:
        """Send text; raises TransportError once the client is gone."""
        ...


@dataclass
class RateWindow:
    """Fixed rate window: when it started and how many attempts it has seen."""

    window_start: float = 0.0
    count: int = 0


@dataclass
class ConnectionState:
    user_id: str | None = None
    room_id: str | None = None
    username: str | None = None
    typing_timer: asyncio.Task | None = None
    rate_window: RateWindow = field(default_factory=RateWindow)

    @property
    def is_authorized(self) -> bool:
        return self.user_id is not None

    def set_user(self, user_id: str, username: str) -> None:
        self.user_id = user_id
        self.username = username


@dataclass
class Connection:
    connection_id: str
    transport: TransportHandle
    state: ConnectionState = field(default_factory=ConnectionState)
