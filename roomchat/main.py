"""
RoomChat Server - Main Application Entry Point

Sets up logging from configuration, builds the FastAPI application and
runs it under uvicorn.
"""

import uvicorn

from .app.factory import create_app
from .config import get_config
from .structured_logging.enhanced_logging_config import get_logger, setup_enhanced_logging

# Logging must be configured before any logger emits
config = get_config()
setup_enhanced_logging(config.to_logging_dict())

logger = get_logger(__name__)
logger.info("Logging setup completed", environment=config.logging.environment)

app = create_app(config)


def main() -> None:
    """Run the server with host and port from configuration."""
    logger.info("Starting RoomChat server", host=config.server.host, port=config.server.port)
    uvicorn.run(
        app,
        host=config.server.host,
        port=config.server.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
