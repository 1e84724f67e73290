"""
Chat use cases.

Each use case is one business operation over the storage handle. Business
failures (unknown room, not the author) are returned as a failed
UseCaseResult carrying an error code, never raised; storage faults
propagate as StorageError. Domain events are published on the event bus
after the state change is persisted.
"""

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from ..config import ChatConfig
from ..error_types import ErrorCode, ErrorMessages
from ..events import (
    EventBus,
    MessageDeleted,
    MessageEdited,
    MessageSent,
    UserConnected,
    UserJoinedRoom,
    UserLeftRoom,
    UserStatusChanged,
)
from ..exceptions import DuplicateUsernameError
from ..models import (
    Message,
    MessageAuthor,
    MessageDTO,
    ReplyPreview,
    RoomInfo,
    User,
    UserStatus,
    create_message,
    create_user,
    now_ms,
)
from ..persistence import Storage
from ..structured_logging.enhanced_logging_config import get_logger
from .message_formatter import MessageFormatter

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class UseCaseError:
    """A business-rule failure with a wire error code."""

    code: ErrorCode
    message: str


@dataclass(frozen=True)
class UseCaseResult(Generic[T]):
    """Tagged success/failure result."""

    ok: bool
    value: T | None = None
    error: UseCaseError | None = None

    @classmethod
    def success(cls, value: Any = None) -> "UseCaseResult[Any]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, code: ErrorCode, message: str) -> "UseCaseResult[Any]":
        return cls(ok=False, error=UseCaseError(code=code, message=message))


@dataclass
class JoinRoomOutput:
    user: User
    room: RoomInfo
    messages: list[MessageDTO]
    users: list[User]


@dataclass
class RoomHistory:
    messages: list[MessageDTO]
    users: list[User]
    has_more: bool

    def to_wire(self) -> dict[str, Any]:
        return {
            "messages": [message.to_wire() for message in self.messages],
            "users": [user.to_wire() for user in self.users],
            "hasMore": self.has_more,
        }


class ChatUseCases:
    """
    Business operations for rooms, users and messages.

    Args:
        storage: Repository handle
        event_bus: Bus receiving domain events
        chat_config: Limits such as the history page size
    """

    def __init__(self, storage: Storage, event_bus: EventBus, chat_config: ChatConfig | None = None) -> None:
        self.storage = storage
        self.event_bus = event_bus
        self.history_limit = (chat_config or ChatConfig()).history_limit

    async def _reactivate(self, existing: User) -> User:
        updated = await self.storage.users.update_status(existing.id, UserStatus.ONLINE.value)
        logger.debug("Existing user reactivated", user_id=existing.id)
        return updated or existing.model_copy(update={"status": UserStatus.ONLINE.value})

    async def _get_or_create_user(self, username: str) -> User:
        existing = await self.storage.users.find_by_username(username)
        if existing is not None:
            return await self._reactivate(existing)

        user = create_user(username)
        try:
            await self.storage.users.create(user)
        except DuplicateUsernameError:
            # A concurrent join created the same name first
            winner = await self.storage.users.find_by_username(username)
            if winner is None:
                raise
            return await self._reactivate(winner)
        logger.info("User created", user_id=user.id, username=username)
        return user

    async def _online_participants(self, participant_ids: set[str]) -> list[User]:
        users = await self.storage.users.find_many(sorted(participant_ids))
        return [user for user in users if user.is_online]

    async def message_to_dto(self, message: Message) -> MessageDTO:
        """
        Build the client-facing view of a message.

        Reply previews resolve deleted parents too, so the author name stays
        visible; the preview text is blank for a deleted parent.
        """
        author = await self.storage.users.find_by_id(message.author_id)
        reply_preview = None
        if message.reply_to:
            parent = await self.storage.messages.find_by_id(message.reply_to, include_deleted=True)
            if parent is not None:
                parent_author = await self.storage.users.find_by_id(parent.author_id)
                reply_preview = ReplyPreview(
                    id=parent.id,
                    author_username=parent_author.username if parent_author else "Unknown",
                    content_preview="" if parent.is_deleted else MessageFormatter.truncate_for_preview(parent.content),
                )

        return MessageDTO(
            id=message.id,
            room_id=message.room_id,
            author=MessageAuthor(
                id=message.author_id,
                username=author.username if author else "Unknown",
                avatar=author.avatar if author else "",
            ),
            content=message.content,
            created_at=message.created_at,
            reply_to=reply_preview,
            edited_at=message.edited_at,
        )

    async def join_room(self, room_id: str, username: str) -> UseCaseResult[JoinRoomOutput]:
        room = await self.storage.rooms.find_by_id(room_id)
        if room is None:
            return UseCaseResult.failure(ErrorCode.ROOM_NOT_FOUND, f"Room '{room_id}' not found")

        user = await self._get_or_create_user(username)
        await self.storage.rooms.add_participant(room_id, user.id)

        messages = await self.storage.messages.find_by_room(room_id, self.history_limit)
        dtos = [await self.message_to_dto(message) for message in messages]

        # Re-read: concurrent joins may have changed the participant set
        room = await self.storage.rooms.find_by_id(room_id) or room
        online_users = await self._online_participants(room.participants)

        self.event_bus.publish(UserJoinedRoom(user_id=user.id, room_id=room_id))
        self.event_bus.publish(UserConnected(user_id=user.id, username=user.username))

        return UseCaseResult.success(
            JoinRoomOutput(user=user, room=RoomInfo.from_room(room), messages=dtos, users=online_users)
        )

    async def leave_room(self, user_id: str, room_id: str) -> UseCaseResult[None]:
        room = await self.storage.rooms.find_by_id(room_id)
        if room is None:
            return UseCaseResult.failure(ErrorCode.ROOM_NOT_FOUND, ErrorMessages.ROOM_NOT_FOUND)

        await self.storage.rooms.remove_participant(room_id, user_id)
        await self.storage.users.update_status(user_id, UserStatus.OFFLINE.value)
        await self.storage.users.update_last_seen(user_id, now_ms())

        self.event_bus.publish(UserLeftRoom(user_id=user_id, room_id=room_id))
        return UseCaseResult.success()

    async def send_message(
        self,
        room_id: str,
        author_id: str,
        content: str,
        reply_to: str | None = None,
    ) -> UseCaseResult[MessageDTO]:
        if await self.storage.rooms.find_by_id(room_id) is None:
            return UseCaseResult.failure(ErrorCode.ROOM_NOT_FOUND, ErrorMessages.ROOM_NOT_FOUND)
        if await self.storage.users.find_by_id(author_id) is None:
            return UseCaseResult.failure(ErrorCode.USER_NOT_FOUND, ErrorMessages.USER_NOT_FOUND)

        message = create_message(room_id, author_id, content, reply_to=reply_to)
        await self.storage.messages.create(message)

        self.event_bus.publish(MessageSent(message_id=message.id, room_id=room_id, author_id=author_id))
        return UseCaseResult.success(await self.message_to_dto(message))

    async def _authored_message(self, message_id: str, user_id: str) -> UseCaseResult[Message]:
        message = await self.storage.messages.find_by_id(message_id)
        if message is None:
            return UseCaseResult.failure(ErrorCode.MESSAGE_NOT_FOUND, ErrorMessages.MESSAGE_NOT_FOUND)
        if message.author_id != user_id:
            return UseCaseResult.failure(ErrorCode.UNAUTHORIZED, ErrorMessages.NOT_MESSAGE_AUTHOR)
        return UseCaseResult.success(message)

    async def edit_message(self, message_id: str, user_id: str, content: str) -> UseCaseResult[Message]:
        found = await self._authored_message(message_id, user_id)
        if not found.ok:
            return found

        updated = await self.storage.messages.update_content(message_id, content, now_ms())
        if updated is None:
            # Deleted between the lookup and the update
            return UseCaseResult.failure(ErrorCode.MESSAGE_NOT_FOUND, ErrorMessages.MESSAGE_NOT_FOUND)

        self.event_bus.publish(MessageEdited(message_id=message_id, room_id=updated.room_id))
        return UseCaseResult.success(updated)

    async def delete_message(self, message_id: str, user_id: str) -> UseCaseResult[None]:
        found = await self._authored_message(message_id, user_id)
        if not found.ok:
            return UseCaseResult.failure(found.error.code, found.error.message)

        await self.storage.messages.soft_delete(message_id)
        self.event_bus.publish(MessageDeleted(message_id=message_id, room_id=found.value.room_id))
        return UseCaseResult.success()

    async def update_user_status(self, user_id: str, status: UserStatus | str) -> UseCaseResult[User]:
        status_value = UserStatus(status).value
        updated = await self.storage.users.update_status(user_id, status_value)
        if updated is None:
            return UseCaseResult.failure(ErrorCode.USER_NOT_FOUND, ErrorMessages.USER_NOT_FOUND)

        self.event_bus.publish(UserStatusChanged(user_id=user_id, status=status_value))
        return UseCaseResult.success(updated)

    async def mark_user_offline(self, user_id: str) -> None:
        """Set a user offline and stamp last-seen; used when a connection closes."""
        await self.storage.users.update_status(user_id, UserStatus.OFFLINE.value)
        await self.storage.users.update_last_seen(user_id, now_ms())

    async def get_rooms(self) -> list[RoomInfo]:
        return [RoomInfo.from_room(room) for room in await self.storage.rooms.find_all()]

    async def get_room_history(
        self,
        room_id: str,
        limit: int = 50,
        before: int | None = None,
    ) -> UseCaseResult[RoomHistory]:
        """
        Page backwards through a room's history.

        Args:
            room_id: Room to read
            limit: Page size
            before: Only messages older than this epoch-ms time

        Returns:
            UseCaseResult[RoomHistory]: Messages oldest first, the room's online users,
            and whether older messages remain
        """
        room = await self.storage.rooms.find_by_id(room_id)
        if room is None:
            return UseCaseResult.failure(ErrorCode.ROOM_NOT_FOUND, ErrorMessages.ROOM_NOT_FOUND)

        page = await self.storage.messages.find_by_room(room_id, limit + 1, before)
        has_more = len(page) > limit
        if has_more:
            page = page[1:]

        dtos = [await self.message_to_dto(message) for message in page]
        users = await self._online_participants(room.participants)
        return UseCaseResult.success(RoomHistory(messages=dtos, users=users, has_more=has_more))

    async def find_user_rooms(self, user_id: str) -> list[str]:
        """Ids of every room the user participates in."""
        return [room.id for room in await self.storage.rooms.find_rooms_for_user(user_id)]
