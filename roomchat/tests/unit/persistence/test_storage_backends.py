"""
Repository contract tests run against both storage backends.

The SQL backend runs on a throwaway aiosqlite file per test.
"""

import asyncio
from collections.abc import AsyncGenerator

import pytest

from roomchat.database import DatabaseManager
from roomchat.events import EventBus
from roomchat.exceptions import DuplicateUsernameError, StorageError
from roomchat.models import Message, create_room, create_user
from roomchat.persistence import Storage, create_memory_storage, seed_default_rooms
from roomchat.services import ChatUseCases


@pytest.fixture(params=["memory", "sql"])
async def backend(request, tmp_path) -> AsyncGenerator[Storage, None]:
    if request.param == "memory":
        yield create_memory_storage()
        return

    manager = DatabaseManager(f"sqlite+aiosqlite:///{tmp_path / 'db' / 'chat.db'}")
    await manager.initialize()
    try:
        yield manager.create_storage()
    finally:
        await manager.close()


def _message(message_id, created_at, room_id="general", author_id="u1", content="text"):
    return Message(id=message_id, room_id=room_id, author_id=author_id, content=content, created_at=created_at)


class TestUserRepository:
    @pytest.mark.asyncio
    async def test_create_and_find(self, backend):
        user = create_user("Alice")
        await backend.users.create(user)

        assert (await backend.users.find_by_id(user.id)).username == "Alice"
        assert (await backend.users.find_by_username("aLiCe")).id == user.id
        assert await backend.users.find_by_username("bob") is None
        assert await backend.users.find_by_id("missing") is None

    @pytest.mark.asyncio
    async def test_update_status_and_last_seen(self, backend):
        user = create_user("alice")
        await backend.users.create(user)

        updated = await backend.users.update_status(user.id, "away")
        assert updated.status == "away"
        await backend.users.update_last_seen(user.id, 1234)
        assert (await backend.users.find_by_id(user.id)).last_seen == 1234
        assert await backend.users.update_status("missing", "away") is None

    @pytest.mark.asyncio
    async def test_find_many_keeps_requested_order(self, backend):
        alice, bob = create_user("alice"), create_user("bob")
        await backend.users.create(alice)
        await backend.users.create(bob)

        found = await backend.users.find_many([bob.id, "missing", alice.id])
        assert [user.username for user in found] == ["bob", "alice"]
        assert await backend.users.find_many([]) == []

    @pytest.mark.asyncio
    async def test_duplicate_username_in_any_case_is_rejected(self, backend):
        original = create_user("alice")
        await backend.users.create(original)

        with pytest.raises(DuplicateUsernameError):
            await backend.users.create(create_user("ALICE"))
        assert (await backend.users.find_by_username("alice")).id == original.id

    @pytest.mark.asyncio
    async def test_concurrent_joins_share_one_user(self, backend):
        """Test interleaved joins under different casing resolve to a single user."""
        await seed_default_rooms(backend)
        event_bus = EventBus()
        use_cases = ChatUseCases(backend, event_bus)
        try:
            results = await asyncio.gather(
                use_cases.join_room("general", "Alice"),
                use_cases.join_room("general", "alice"),
                use_cases.join_room("general", "alice"),
            )
        finally:
            await event_bus.shutdown()

        assert all(result.ok for result in results)
        assert len({result.value.user.id for result in results}) == 1
        assert (await backend.rooms.find_by_id("general")).participants == {results[0].value.user.id}


class TestRoomRepository:
    @pytest.mark.asyncio
    async def test_seed_default_rooms_is_idempotent(self, backend):
        assert await seed_default_rooms(backend) == 3
        assert await seed_default_rooms(backend) == 0
        assert {room.id for room in await backend.rooms.find_all()} == {"general", "random", "tech"}

    @pytest.mark.asyncio
    async def test_participants(self, backend):
        await backend.rooms.create(create_room("lobby", "Lobby"))
        user = create_user("alice")
        await backend.users.create(user)

        await backend.rooms.add_participant("lobby", user.id)
        await backend.rooms.add_participant("lobby", user.id)
        assert (await backend.rooms.find_by_id("lobby")).participants == {user.id}
        assert [room.id for room in await backend.rooms.find_rooms_for_user(user.id)] == ["lobby"]

        await backend.rooms.remove_participant("lobby", user.id)
        assert (await backend.rooms.find_by_id("lobby")).participants == set()
        assert await backend.rooms.find_rooms_for_user(user.id) == []

    @pytest.mark.asyncio
    async def test_returned_room_is_a_copy(self, backend):
        await backend.rooms.create(create_room("lobby", "Lobby"))
        room = await backend.rooms.find_by_id("lobby")
        room.participants.add("intruder")
        assert (await backend.rooms.find_by_id("lobby")).participants == set()

    @pytest.mark.asyncio
    async def test_unknown_room(self, backend):
        assert await backend.rooms.find_by_id("nowhere") is None


class TestMessageRepository:
    @pytest.fixture
    async def seeded(self, backend):
        await seed_default_rooms(backend)
        for i in range(5):
            await backend.messages.create(_message(f"m{i}", 1000 + i))
        await backend.messages.create(_message("other", 1002, room_id="tech"))
        return backend

    @pytest.mark.asyncio
    async def test_find_by_room_returns_newest_page_oldest_first(self, seeded):
        page = await seeded.messages.find_by_room("general", limit=3)
        assert [m.id for m in page] == ["m2", "m3", "m4"]

    @pytest.mark.asyncio
    async def test_find_by_room_before(self, seeded):
        page = await seeded.messages.find_by_room("general", limit=10, before=1003)
        assert [m.id for m in page] == ["m0", "m1", "m2"]

    @pytest.mark.asyncio
    async def test_find_by_room_zero_limit(self, seeded):
        assert await seeded.messages.find_by_room("general", limit=0) == []

    @pytest.mark.asyncio
    async def test_soft_delete_hides_message(self, seeded):
        assert await seeded.messages.soft_delete("m4") is True
        assert await seeded.messages.soft_delete("missing") is False

        assert await seeded.messages.find_by_id("m4") is None
        assert (await seeded.messages.find_by_id("m4", include_deleted=True)).is_deleted is True
        page = await seeded.messages.find_by_room("general", limit=2)
        assert [m.id for m in page] == ["m2", "m3"]

    @pytest.mark.asyncio
    async def test_update_content(self, seeded):
        updated = await seeded.messages.update_content("m1", "edited", 5000)
        assert updated.content == "edited"
        assert updated.edited_at == 5000
        assert (await seeded.messages.find_by_id("m1")).content == "edited"

    @pytest.mark.asyncio
    async def test_update_deleted_message(self, seeded):
        await seeded.messages.soft_delete("m1")
        assert await seeded.messages.update_content("m1", "edited", 5000) is None
        assert await seeded.messages.update_content("missing", "edited", 5000) is None


class TestDatabaseManager:
    def test_create_storage_requires_initialize(self):
        manager = DatabaseManager("sqlite+aiosqlite:///:memory:")
        with pytest.raises(StorageError, match="initialize"):
            manager.create_storage()

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, tmp_path):
        manager = DatabaseManager(f"sqlite+aiosqlite:///{tmp_path / 'chat.db'}")
        await manager.initialize()
        await manager.close()
        await manager.close()
        assert manager.engine is None

    @pytest.mark.asyncio
    async def test_data_survives_reconnect(self, tmp_path):
        url = f"sqlite+aiosqlite:///{tmp_path / 'chat.db'}"
        first = DatabaseManager(url)
        await first.initialize()
        await seed_default_rooms(first.create_storage())
        await first.close()

        second = DatabaseManager(url)
        await second.initialize()
        try:
            assert await seed_default_rooms(second.create_storage()) == 0
        finally:
            await second.close()
