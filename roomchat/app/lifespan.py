"""Application lifecycle management for the RoomChat server."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from ..container import ApplicationContainer
from ..structured_logging.enhanced_logging_config import get_logger, log_exception_once

logger = get_logger("roomchat.lifespan")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Build the ApplicationContainer on startup and shut it down on exit.

    A container already placed on app.state (tests do this) is reused
    instead of creating a new one.
    """
    container = getattr(app.state, "container", None)
    if container is None:
        container = ApplicationContainer()
        app.state.container = container

    logger.info("Starting RoomChat server")
    try:
        await container.initialize()
    except Exception as error:
        log_exception_once(logger, "error", "Failed to initialize services", exc=error, lifespan_phase="startup")
        raise

    try:
        yield
    finally:
        try:
            await container.shutdown()
        except Exception as error:  # pylint: disable=broad-exception-caught
            log_exception_once(logger, "error", "Error during shutdown", exc=error, lifespan_phase="shutdown")
        logger.info("RoomChat server stopped")
