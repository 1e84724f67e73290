"""
RoomChat server package.

A real-time, room-based chat service. Clients connect over a WebSocket,
join named rooms, exchange short text messages, and see presence and
typing signals from the other members of their room.
"""

__version__ = "0.1.0"
