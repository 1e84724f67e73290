"""Use-case layer and pure content helpers."""

from .chat_use_cases import ChatUseCases, JoinRoomOutput, RoomHistory, UseCaseError, UseCaseResult
from .message_formatter import MessageFormatter

__all__ = ["ChatUseCases", "JoinRoomOutput", "MessageFormatter", "RoomHistory", "UseCaseError", "UseCaseResult"]
