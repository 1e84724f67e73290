"""
FastAPI application factory for the RoomChat server.

This module handles FastAPI app creation, middleware configuration,
and router registration.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..api.health import health_router
from ..api.real_time import realtime_alias_router, realtime_router
from ..api.rooms import room_router
from ..config import AppConfig, get_config
from ..container import ApplicationContainer
from ..structured_logging.enhanced_logging_config import get_logger
from .lifespan import lifespan

logger = get_logger(__name__)


def create_app(config: AppConfig | None = None, container: ApplicationContainer | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Configuration to use instead of get_config()
        container: Pre-built container; the lifespan initializes it if needed

    Returns:
        FastAPI: The configured FastAPI application instance
    """
    config = config or (container.config if container is not None else get_config())

    app = FastAPI(
        title="RoomChat API",
        description="Room-based real-time chat server",
        version="0.1.0",
        lifespan=lifespan,
    )
    if container is None:
        container = ApplicationContainer(config)
    app.state.container = container

    cors_cfg = config.cors
    logger.info(
        "CORS configuration",
        allow_origins=cors_cfg.allow_origins,
        allow_methods=cors_cfg.allow_methods,
        allow_credentials=cors_cfg.allow_credentials,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_cfg.allow_origins,
        allow_credentials=cors_cfg.allow_credentials,
        allow_methods=[method.upper() for method in cors_cfg.allow_methods],
        allow_headers=cors_cfg.allow_headers,
    )

    app.include_router(health_router)
    app.include_router(room_router)
    app.include_router(realtime_router)
    app.include_router(realtime_alias_router)

    return app
