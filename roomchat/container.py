"""
Dependency injection container for RoomChat.

ApplicationContainer builds every long-lived service in dependency order
and tears them down in reverse. The FastAPI lifespan owns one container
and stores it on app.state.container; request handlers reach services
through it rather than through module globals.
"""

from typing import Any

from .config import AppConfig, get_config
from .database import DatabaseManager
from .events import EventBus
from .persistence import Storage, create_memory_storage, seed_default_rooms
from .realtime.connection_manager import ConnectionManager
from .services import ChatUseCases
from .structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)


class ApplicationContainer:
    """
    Holds the application's services.

    Services are NOT created in __init__; await initialize() first and
    shutdown() when done.
    """

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config: AppConfig = config or get_config()
        self.database_manager: DatabaseManager | None = None
        self.storage: Storage | None = None
        self.event_bus: EventBus | None = None
        self.use_cases: ChatUseCases | None = None
        self.connection_manager: ConnectionManager | None = None
        self._initialized: bool = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def _create_storage(self) -> Storage:
        database = self.config.database
        if database.backend == "sql":
            self.database_manager = DatabaseManager(database.url, echo=database.echo)
            await self.database_manager.initialize()
            return self.database_manager.create_storage()
        return create_memory_storage()

    async def initialize(self) -> None:
        """Create storage, the event bus, the use cases and the connection registry."""
        if self._initialized:
            return

        logger.info("Initializing application container", storage_backend=self.config.database.backend)
        self.storage = await self._create_storage()
        await seed_default_rooms(self.storage)

        self.event_bus = EventBus()
        self.use_cases = ChatUseCases(self.storage, self.event_bus, self.config.chat)
        self.connection_manager = ConnectionManager(self.use_cases, self.event_bus, self.config.chat)

        self._initialized = True
        logger.info("Application container initialized")

    async def shutdown(self) -> None:
        """Release services in reverse order. Safe to call more than once."""
        if self.connection_manager is not None:
            for connection_id in list(self.connection_manager.connections):
                await self.connection_manager.remove_connection(connection_id)

        if self.event_bus is not None:
            await self.event_bus.shutdown()

        if self.database_manager is not None:
            await self.database_manager.close()

        self._initialized = False
        logger.info("Application container shut down")

    def get_stats(self) -> dict[str, Any]:
        stats: dict[str, Any] = {"initialized": self._initialized}
        if self.connection_manager is not None:
            stats["realtime"] = self.connection_manager.get_stats()
        return stats
