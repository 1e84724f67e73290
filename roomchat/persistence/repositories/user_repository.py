"""
User repository for async SQL persistence.

Rows are mapped to pydantic User models at the repository boundary; no ORM
object ever leaves this module.
"""

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from roomchat.exceptions import DuplicateUsernameError, StorageError, create_error_context
from roomchat.models import User
from roomchat.persistence.orm import UserRow
from roomchat.structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)


def _to_model(row: UserRow) -> User:
    return User(
        id=row.id,
        username=row.username,
        avatar=row.avatar,
        status=row.status,
        joined_at=row.joined_at,
        last_seen=row.last_seen,
    )


class UserRepository:
    """Repository for user persistence operations."""

    def __init__(self, session_maker: async_sessionmaker) -> None:
        self._session_maker = session_maker

    def _fail(self, operation: str, error: SQLAlchemyError, **context: str) -> StorageError:
        logger.error("User repository operation failed", operation=operation, error=str(error), **context)
        return StorageError(
            f"Database error during {operation}: {error}",
            context=create_error_context(**context),
            operation=operation,
            table="users",
        )

    async def find_by_id(self, user_id: str) -> User | None:
        try:
            async with self._session_maker() as session:
                row = await session.get(UserRow, user_id)
                return _to_model(row) if row else None
        except SQLAlchemyError as e:
            raise self._fail("find_by_id", e, user_id=user_id) from e

    async def find_by_username(self, username: str) -> User | None:
        """
        Get a user by username (case-insensitive).

        Args:
            username: Display name to look up

        Returns:
            User | None: The matching user, if any

        Raises:
            StorageError: If the database operation fails
        """
        try:
            async with self._session_maker() as session:
                stmt = select(UserRow).where(func.lower(UserRow.username) == username.lower())
                row = (await session.execute(stmt)).scalars().first()
                return _to_model(row) if row else None
        except SQLAlchemyError as e:
            raise self._fail("find_by_username", e, username=username) from e

    async def create(self, user: User) -> User:
        try:
            async with self._session_maker() as session:
                session.add(
                    UserRow(
                        id=user.id,
                        username=user.username,
                        avatar=user.avatar,
                        status=user.status,
                        joined_at=user.joined_at,
                        last_seen=user.last_seen,
                    )
                )
                await session.commit()
            logger.debug("User created", user_id=user.id, username=user.username)
            return user
        except IntegrityError as e:
            # Unique index on lower(username) rejected a concurrent insert
            logger.info("Username already taken", username=user.username, error=str(e.orig))
            raise DuplicateUsernameError(user.username) from e
        except SQLAlchemyError as e:
            raise self._fail("create", e, user_id=user.id) from e

    async def update_status(self, user_id: str, status: str) -> User | None:
        try:
            async with self._session_maker() as session:
                row = await session.get(UserRow, user_id)
                if row is None:
                    return None
                row.status = status
                await session.commit()
                return _to_model(row)
        except SQLAlchemyError as e:
            raise self._fail("update_status", e, user_id=user_id) from e

    async def update_last_seen(self, user_id: str, last_seen: int) -> None:
        try:
            async with self._session_maker() as session:
                await session.execute(update(UserRow).where(UserRow.id == user_id).values(last_seen=last_seen))
                await session.commit()
        except SQLAlchemyError as e:
            raise self._fail("update_last_seen", e, user_id=user_id) from e

    async def find_many(self, user_ids: list[str]) -> list[User]:
        if not user_ids:
            return []
        try:
            async with self._session_maker() as session:
                rows = (await session.execute(select(UserRow).where(UserRow.id.in_(user_ids)))).scalars().all()
                by_id = {row.id: _to_model(row) for row in rows}
                return [by_id[uid] for uid in user_ids if uid in by_id]
        except SQLAlchemyError as e:
            raise self._fail("find_many", e) from e
