"""
Message repository for async SQL persistence.

Deleted messages are tombstoned with is_deleted and hidden from every
query except an explicit include_deleted lookup.
"""

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from roomchat.exceptions import StorageError, create_error_context
from roomchat.models import Message
from roomchat.persistence.orm import MessageRow
from roomchat.structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)


def _to_model(row: MessageRow) -> Message:
    return Message(
        id=row.id,
        room_id=row.room_id,
        author_id=row.author_id,
        content=row.content,
        created_at=row.created_at,
        edited_at=row.edited_at,
        reply_to=row.reply_to,
        is_deleted=bool(row.is_deleted),
    )


class MessageRepository:
    """Repository for message persistence operations."""

    def __init__(self, session_maker: async_sessionmaker) -> None:
        self._session_maker = session_maker

    def _fail(self, operation: str, error: SQLAlchemyError, **context: str) -> StorageError:
        logger.error("Message repository operation failed", operation=operation, error=str(error), **context)
        return StorageError(
            f"Database error during {operation}: {error}",
            context=create_error_context(**context),
            operation=operation,
            table="messages",
        )

    async def find_by_id(self, message_id: str, include_deleted: bool = False) -> Message | None:
        try:
            async with self._session_maker() as session:
                row = await session.get(MessageRow, message_id)
                if row is None or (row.is_deleted and not include_deleted):
                    return None
                return _to_model(row)
        except SQLAlchemyError as e:
            raise self._fail("find_by_id", e, message_id=message_id) from e

    async def find_by_room(self, room_id: str, limit: int = 50, before: int | None = None) -> list[Message]:
        """
        Get a page of a room's history.

        Args:
            room_id: Room to read
            limit: Maximum number of messages
            before: Only messages created strictly before this epoch-ms time

        Returns:
            list[Message]: The newest matching messages, oldest first
        """
        try:
            async with self._session_maker() as session:
                stmt = select(MessageRow).where(MessageRow.room_id == room_id, MessageRow.is_deleted.is_(False))
                if before is not None:
                    stmt = stmt.where(MessageRow.created_at < before)
                stmt = stmt.order_by(MessageRow.created_at.desc(), MessageRow.id.desc()).limit(limit)
                rows = (await session.execute(stmt)).scalars().all()
                return [_to_model(row) for row in reversed(rows)]
        except SQLAlchemyError as e:
            raise self._fail("find_by_room", e, room_id=room_id) from e

    async def create(self, message: Message) -> Message:
        try:
            async with self._session_maker() as session:
                session.add(
                    MessageRow(
                        id=message.id,
                        room_id=message.room_id,
                        author_id=message.author_id,
                        content=message.content,
                        created_at=message.created_at,
                        edited_at=message.edited_at,
                        reply_to=message.reply_to,
                        is_deleted=message.is_deleted,
                    )
                )
                await session.commit()
            return message
        except SQLAlchemyError as e:
            raise self._fail("create", e, message_id=message.id, room_id=message.room_id) from e

    async def update_content(self, message_id: str, content: str, edited_at: int) -> Message | None:
        try:
            async with self._session_maker() as session:
                row = await session.get(MessageRow, message_id)
                if row is None or row.is_deleted:
                    return None
                row.content = content
                row.edited_at = edited_at
                await session.commit()
                return _to_model(row)
        except SQLAlchemyError as e:
            raise self._fail("update_content", e, message_id=message_id) from e

    async def soft_delete(self, message_id: str) -> bool:
        try:
            async with self._session_maker() as session:
                result = await session.execute(
                    update(MessageRow).where(MessageRow.id == message_id).values(is_deleted=True)
                )
                await session.commit()
                return result.rowcount > 0
        except SQLAlchemyError as e:
            raise self._fail("soft_delete", e, message_id=message_id) from e
