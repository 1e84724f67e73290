"""
Storage handle shared by the use-case layer.

A Storage bundles one repository per entity. Both backends produce the
same handle, so nothing above this module knows which one is in use.
"""

from dataclasses import dataclass

from roomchat.models import DEFAULT_ROOMS, create_room
from roomchat.persistence.memory_storage import MemoryMessageRepository, MemoryRoomRepository, MemoryUserRepository
from roomchat.persistence.protocols import (
    MessageRepositoryProtocol,
    RoomRepositoryProtocol,
    UserRepositoryProtocol,
)
from roomchat.structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class Storage:
    users: UserRepositoryProtocol
    rooms: RoomRepositoryProtocol
    messages: MessageRepositoryProtocol


def create_memory_storage() -> Storage:
    return Storage(
        users=MemoryUserRepository(),
        rooms=MemoryRoomRepository(),
        messages=MemoryMessageRepository(),
    )


async def seed_default_rooms(storage: Storage) -> int:
    """
    Create the default rooms that do not exist yet.

    Returns:
        int: Number of rooms created
    """
    created = 0
    for room_id, name, description in DEFAULT_ROOMS:
        if await storage.rooms.find_by_id(room_id) is None:
            await storage.rooms.create(create_room(room_id, name, description))
            created += 1
    if created:
        logger.info("Default rooms seeded", rooms_created=created)
    return created
