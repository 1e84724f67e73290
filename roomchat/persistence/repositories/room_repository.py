"""
Room repository for async SQL persistence.

Participant sets live in the room_participants join table and are loaded
alongside each room.
"""

from collections import defaultdict

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from roomchat.exceptions import StorageError, create_error_context
from roomchat.models import Room
from roomchat.persistence.orm import RoomParticipantRow, RoomRow
from roomchat.structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)


class RoomRepository:
    """Repository for room and participant persistence operations."""

    def __init__(self, session_maker: async_sessionmaker) -> None:
        self._session_maker = session_maker

    def _fail(self, operation: str, error: SQLAlchemyError, **context: str) -> StorageError:
        logger.error("Room repository operation failed", operation=operation, error=str(error), **context)
        return StorageError(
            f"Database error during {operation}: {error}",
            context=create_error_context(**context),
            operation=operation,
            table="rooms",
        )

    @staticmethod
    async def _participants(session: AsyncSession, room_ids: list[str]) -> dict[str, set[str]]:
        result: dict[str, set[str]] = defaultdict(set)
        if not room_ids:
            return result
        stmt = select(RoomParticipantRow).where(RoomParticipantRow.room_id.in_(room_ids))
        for row in (await session.execute(stmt)).scalars():
            result[row.room_id].add(row.user_id)
        return result

    @staticmethod
    def _to_model(row: RoomRow, participants: set[str]) -> Room:
        return Room(
            id=row.id,
            name=row.name,
            description=row.description or "",
            created_at=row.created_at,
            participants=set(participants),
        )

    async def find_by_id(self, room_id: str) -> Room | None:
        try:
            async with self._session_maker() as session:
                row = await session.get(RoomRow, room_id)
                if row is None:
                    return None
                participants = await self._participants(session, [room_id])
                return self._to_model(row, participants[room_id])
        except SQLAlchemyError as e:
            raise self._fail("find_by_id", e, room_id=room_id) from e

    async def find_all(self) -> list[Room]:
        try:
            async with self._session_maker() as session:
                rows = (await session.execute(select(RoomRow).order_by(RoomRow.created_at, RoomRow.id))).scalars().all()
                participants = await self._participants(session, [row.id for row in rows])
                return [self._to_model(row, participants[row.id]) for row in rows]
        except SQLAlchemyError as e:
            raise self._fail("find_all", e) from e

    async def create(self, room: Room) -> Room:
        try:
            async with self._session_maker() as session:
                session.add(
                    RoomRow(id=room.id, name=room.name, description=room.description, created_at=room.created_at)
                )
                for user_id in room.participants:
                    session.add(RoomParticipantRow(room_id=room.id, user_id=user_id))
                await session.commit()
            logger.debug("Room created", room_id=room.id)
            return room
        except SQLAlchemyError as e:
            raise self._fail("create", e, room_id=room.id) from e

    async def add_participant(self, room_id: str, user_id: str) -> None:
        """
        Add a user to a room's participant set.

        Adding an existing participant is a no-op.

        Raises:
            StorageError: If the database operation fails
        """
        try:
            async with self._session_maker() as session:
                existing = await session.get(RoomParticipantRow, (room_id, user_id))
                if existing is None:
                    session.add(RoomParticipantRow(room_id=room_id, user_id=user_id))
                await session.commit()
        except IntegrityError:
            # Lost a race with a concurrent join for the same user
            logger.debug("Participant already present", room_id=room_id, user_id=user_id)
        except SQLAlchemyError as e:
            raise self._fail("add_participant", e, room_id=room_id, user_id=user_id) from e

    async def remove_participant(self, room_id: str, user_id: str) -> None:
        try:
            async with self._session_maker() as session:
                await session.execute(
                    delete(RoomParticipantRow).where(
                        RoomParticipantRow.room_id == room_id,
                        RoomParticipantRow.user_id == user_id,
                    )
                )
                await session.commit()
        except SQLAlchemyError as e:
            raise self._fail("remove_participant", e, room_id=room_id, user_id=user_id) from e

    async def find_rooms_for_user(self, user_id: str) -> list[Room]:
        try:
            async with self._session_maker() as session:
                stmt = (
                    select(RoomRow)
                    .join(RoomParticipantRow, RoomParticipantRow.room_id == RoomRow.id)
                    .where(RoomParticipantRow.user_id == user_id)
                    .order_by(RoomRow.id)
                )
                rows = (await session.execute(stmt)).scalars().all()
                participants = await self._participants(session, [row.id for row in rows])
                return [self._to_model(row, participants[row.id]) for row in rows]
        except SQLAlchemyError as e:
            raise self._fail("find_rooms_for_user", e, user_id=user_id) from e
