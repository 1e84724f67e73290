"""
In-memory storage backend.

Everything lives in dicts keyed by id and is lost on restart. Returned
models are copies, so callers can never mutate stored state by accident.
"""

from roomchat.exceptions import DuplicateUsernameError
from roomchat.models import Message, Room, User


class MemoryUserRepository:
    def __init__(self) -> None:
        self._users: dict[str, User] = {}

    async def find_by_id(self, user_id: str) -> User | None:
        user = self._users.get(user_id)
        return user.model_copy() if user else None

    async def find_by_username(self, username: str) -> User | None:
        lowered = username.lower()
        for user in self._users.values():
            if user.username.lower() == lowered:
                return user.model_copy()
        return None

    async def create(self, user: User) -> User:
        lowered = user.username.lower()
        if any(existing.username.lower() == lowered for existing in self._users.values()):
            raise DuplicateUsernameError(user.username)
        self._users[user.id] = user.model_copy()
        return user

    async def update_status(self, user_id: str, status: str) -> User | None:
        user = self._users.get(user_id)
        if user is None:
            return None
        user.status = status
        return user.model_copy()

    async def update_last_seen(self, user_id: str, last_seen: int) -> None:
        user = self._users.get(user_id)
        if user is not None:
            user.last_seen = last_seen

    async def find_many(self, user_ids: list[str]) -> list[User]:
        return [self._users[uid].model_copy() for uid in user_ids if uid in self._users]


class MemoryRoomRepository:
    def __init__(self) -> None:
        self._rooms: dict[str, Room] = {}

    async def find_by_id(self, room_id: str) -> Room | None:
        room = self._rooms.get(room_id)
        return room.model_copy(deep=True) if room else None

    async def find_all(self) -> list[Room]:
        return [room.model_copy(deep=True) for room in self._rooms.values()]

    async def create(self, room: Room) -> Room:
        self._rooms[room.id] = room.model_copy(deep=True)
        return room

    async def add_participant(self, room_id: str, user_id: str) -> None:
        room = self._rooms.get(room_id)
        if room is not None:
            room.participants.add(user_id)

    async def remove_participant(self, room_id: str, user_id: str) -> None:
        room = self._rooms.get(room_id)
        if room is not None:
            room.participants.discard(user_id)

    async def find_rooms_for_user(self, user_id: str) -> list[Room]:
        return [room.model_copy(deep=True) for room in self._rooms.values() if user_id in room.participants]


class MemoryMessageRepository:
    def __init__(self) -> None:
        # Insertion order is persistence order
        self._messages: dict[str, Message] = {}

    async def find_by_id(self, message_id: str, include_deleted: bool = False) -> Message | None:
        message = self._messages.get(message_id)
        if message is None or (message.is_deleted and not include_deleted):
            return None
        return message.model_copy()

    async def find_by_room(self, room_id: str, limit: int = 50, before: int | None = None) -> list[Message]:
        matching = [
            m
            for m in self._messages.values()
            if m.room_id == room_id and not m.is_deleted and (before is None or m.created_at < before)
        ]
        if limit <= 0:
            return []
        return [m.model_copy() for m in matching[-limit:]]

    async def create(self, message: Message) -> Message:
        self._messages[message.id] = message.model_copy()
        return message

    async def update_content(self, message_id: str, content: str, edited_at: int) -> Message | None:
        message = self._messages.get(message_id)
        if message is None or message.is_deleted:
            return None
        message.content = content
        message.edited_at = edited_at
        return message.model_copy()

    async def soft_delete(self, message_id: str) -> bool:
        message = self._messages.get(message_id)
        if message is None:
            return False
        message.is_deleted = True
        return True
