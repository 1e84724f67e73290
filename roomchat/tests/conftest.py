"""
Test configuration and fixtures for the RoomChat test suite.

Environment defaults are set before any roomchat import so that module
level configuration never touches real log directories or databases.
"""

import os
from collections.abc import AsyncGenerator, Generator
from typing import Any

import pytest

os.environ.setdefault("LOGGING_ENVIRONMENT", "unit_test")
os.environ.setdefault("LOGGING_FILE_LOGGING", "false")
os.environ.setdefault("LOGGING_LEVEL", "WARNING")
os.environ.setdefault("DATABASE_BACKEND", "memory")

# Imports must come after environment variables
from roomchat.config import ChatConfig, reset_config  # noqa: E402
from roomchat.events import EventBus  # noqa: E402
from roomchat.persistence import Storage, create_memory_storage, seed_default_rooms  # noqa: E402
from roomchat.realtime.connection_manager import ConnectionManager  # noqa: E402
from roomchat.services import ChatUseCases  # noqa: E402
from roomchat.structured_logging.enhanced_logging_config import get_logger  # noqa: E402
from roomchat.structured_logging.logging_context import clear_all_context  # noqa: E402


@pytest.fixture(autouse=True)
def reset_config_singleton() -> Generator[None, None, None]:
    """Reset config and logging context before and after each test."""
    reset_config()
    clear_all_context()
    yield
    reset_config()
    clear_all_context()


@pytest.fixture
def test_logger() -> Any:
    """Provide a logger for tests."""
    return get_logger(__name__)


@pytest.fixture
def chat_config() -> ChatConfig:
    """Chat limits with a short typing timeout so timer tests stay fast."""
    return ChatConfig(typing_timeout_ms=50, rate_limit_messages_per_minute=30)


@pytest.fixture
async def storage() -> Storage:
    """In-memory storage seeded with the default rooms."""
    memory_storage = create_memory_storage()
    await seed_default_rooms(memory_storage)
    return memory_storage


@pytest.fixture
async def event_bus() -> AsyncGenerator[EventBus, None]:
    bus = EventBus()
    yield bus
    await bus.shutdown()


@pytest.fixture
def use_cases(storage: Storage, event_bus: EventBus, chat_config: ChatConfig) -> ChatUseCases:
    return ChatUseCases(storage, event_bus, chat_config)


@pytest.fixture
async def connection_manager(
    use_cases: ChatUseCases, event_bus: EventBus, chat_config: ChatConfig
) -> AsyncGenerator[ConnectionManager, None]:
    """Connection registry wired to in-memory storage; tears down live connections afterwards."""
    manager = ConnectionManager(use_cases, event_bus, chat_config)
    yield manager
    for connection_id in list(manager.connections):
        await manager.remove_connection(connection_id)


def pytest_collection_modifyitems(config: Any, items: list[Any]) -> None:
    """Auto-mark tests based on their directory."""
    for item in items:
        file_path = str(item.fspath)
        if "/unit/" in file_path or "\\unit\\" in file_path:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in file_path or "\\integration\\" in file_path:
            item.add_marker(pytest.mark.integration)
