"""
Database management for the SQL storage backend.

DatabaseManager owns the async engine and session maker. It is created
and closed by the application container rather than living as a module
singleton, so tests can run several databases side by side.
"""

from pathlib import Path

from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from .exceptions import StorageError, create_error_context
from .persistence.orm import Base
from .persistence.repositories import MessageRepository, RoomRepository, UserRepository
from .persistence.storage import Storage
from .structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)


class DatabaseManager:
    """
    Async engine and session-maker holder.

    Call initialize() once before use and close() on shutdown.
    """

    def __init__(self, database_url: str, echo: bool = False) -> None:
        self.database_url = database_url
        self.echo = echo
        self.engine: AsyncEngine | None = None
        self.session_maker: async_sessionmaker | None = None

    def _ensure_sqlite_directory(self) -> None:
        url = make_url(self.database_url)
        if url.get_backend_name() != "sqlite" or not url.database or url.database == ":memory:":
            return
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    async def initialize(self) -> None:
        """
        Create the engine and the schema.

        Raises:
            StorageError: If the database cannot be reached or the schema cannot be created
        """
        if self.engine is not None:
            return

        self._ensure_sqlite_directory()
        self.engine = create_async_engine(self.database_url, echo=self.echo, pool_pre_ping=True)
        self.session_maker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as e:
            context = create_error_context(operation="init_db")
            logger.error("Database initialization failed", error=str(e), error_type=type(e).__name__)
            await self.close()
            raise StorageError(f"Database initialization failed: {e}", context=context, operation="init_db") from e

        logger.info("Database initialized", database_url=self.database_url)

    def create_storage(self) -> Storage:
        if self.session_maker is None:
            raise StorageError("DatabaseManager.initialize() must be awaited first", operation="create_storage")
        return Storage(
            users=UserRepository(self.session_maker),
            rooms=RoomRepository(self.session_maker),
            messages=MessageRepository(self.session_maker),
        )

    async def close(self) -> None:
        """Dispose of the engine."""
        if self.engine is None:
            return
        engine = self.engine
        self.engine = None
        self.session_maker = None
        await engine.dispose()
        logger.info("Database connections closed")
