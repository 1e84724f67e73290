"""
Structlog-based logging configuration for the RoomChat server.

This is the main entry point for the logging system. Application modules
obtain loggers exclusively through get_logger() and log with key-value
pairs; setup_enhanced_logging() wires structlog onto the standard library
logging tree with a rotating file handler and console output.
"""

import json
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

import structlog
from structlog.contextvars import merge_contextvars
from structlog.stdlib import BoundLogger, LoggerFactory

from roomchat.structured_logging.logging_processors import sanitize_sensitive_data

# Module-level logger for internal use; get_logger() is for everyone else
logger = structlog.get_logger(__name__)

_DEFAULT_MAX_BYTES = 10 * 1024 * 1024
_DEFAULT_BACKUP_COUNT = 5


class _LoggingState:  # pylint: disable=too-few-public-methods
    """State container for logging initialization to avoid global statements."""

    initialized: bool = False
    signature: str | None = None
    handlers: list[logging.Handler] = []


_logging_state = _LoggingState()


def _build_renderer(log_format: str) -> Any:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    if log_format == "colored":
        return structlog.dev.ConsoleRenderer(colors=True)
    return structlog.processors.KeyValueRenderer(key_order=["timestamp", "level", "logger", "event"])


def configure_enhanced_structlog(
    environment: str = "local",
    log_level: str = "INFO",
    log_config: dict[str, Any] | None = None,
) -> None:
    """
    Configure structlog with context merging, sanitisation and rendering.

    Args:
        environment: Environment name, used for the log directory
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_config: Logging configuration dictionary
    """
    log_config = log_config or {}

    base_processors: list[Any] = [
        sanitize_sensitive_data,
        merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=base_processors + [_build_renderer(log_config.get("format", "human"))],
        context_class=dict,
        logger_factory=LoggerFactory(),
        wrapper_class=BoundLogger,
        cache_logger_on_first_use=False,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    if log_config.get("disable_logging", False):
        root_logger.setLevel(logging.CRITICAL + 1)
        return

    _install_handlers(root_logger, environment, log_config)


def _install_handlers(root_logger: logging.Logger, environment: str, log_config: dict[str, Any]) -> None:
    for handler in _logging_state.handlers:
        root_logger.removeHandler(handler)
        handler.close()
    _logging_state.handlers = []

    # structlog has already rendered the message
    formatter = logging.Formatter("%(message)s")

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    _logging_state.handlers.append(console_handler)

    if log_config.get("file_logging", True):
        env_log_dir = Path(log_config.get("log_base", "logs")) / environment
        try:
            env_log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                env_log_dir / "server.log",
                maxBytes=int(log_config.get("rotation_max_bytes", _DEFAULT_MAX_BYTES)),
                backupCount=int(log_config.get("rotation_backup_count", _DEFAULT_BACKUP_COUNT)),
                encoding="utf-8",
            )
            file_handler.setFormatter(formatter)
            _logging_state.handlers.append(file_handler)
        except OSError as e:
            # Console logging still works without the file handler
            logger.warning("Failed to create log directory", directory=str(env_log_dir), error=str(e))

    for handler in _logging_state.handlers:
        root_logger.addHandler(handler)


def setup_enhanced_logging(config: dict[str, Any], *, force_reconfigure: bool = False) -> None:
    """
    Set up logging from a configuration dictionary.

    Repeated calls with an already-initialized logging system are ignored
    unless force_reconfigure is set.

    Args:
        config: Configuration dictionary with a "logging" section
        force_reconfigure: When True, tear down existing handlers before reconfiguring
    """
    config_signature = json.dumps(config, sort_keys=True, default=str)

    if _logging_state.initialized and not force_reconfigure:
        get_logger("roomchat.structured_logging.setup").debug(
            "setup_enhanced_logging skipped; logging system already initialized",
            config_signature=_logging_state.signature,
        )
        return

    logging_config = config.get("logging", {})
    environment = logging_config.get("environment", "local")
    log_level = logging_config.get("level", "INFO")

    configure_enhanced_structlog(environment, log_level, logging_config)

    if not logging_config.get("disable_logging", False):
        _configure_uvicorn_logging()
        get_logger("roomchat.structured_logging.enhanced").info(
            "Logging system initialized",
            environment=environment,
            log_level=log_level,
            log_base=logging_config.get("log_base", "logs"),
        )

    _logging_state.initialized = True
    _logging_state.signature = config_signature


def _configure_uvicorn_logging() -> None:
    """Route uvicorn's loggers through the root handlers."""
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers = []
        uvicorn_logger.propagate = True


def get_logger(name: str) -> Any:  # Returns BoundLogger but typed as Any for flexibility
    """
    Get a structlog logger with the specified name.

    This is the public API for obtaining loggers. All application code
    should use this function rather than calling structlog.get_logger()
    directly.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)


def log_exception_once(
    bound_logger: BoundLogger,
    level: str,
    message: str,
    *,
    exc: Exception | None = None,
    **kwargs: Any,
) -> None:
    """
    Log an exception once, respecting exceptions that have already been logged.

    Args:
        bound_logger: Structlog bound logger instance.
        level: Logging level to use (for example, "error" or "warning").
        message: Log message to emit.
        exc: Optional exception to include in the log entry.
        **kwargs: Additional key-value pairs for structured logging.
    """
    if exc is not None:
        if getattr(exc, "already_logged", False):
            return
        kwargs.setdefault("error_type", type(exc).__name__)
        kwargs.setdefault("error", str(exc))

    log_method = getattr(bound_logger, level.lower(), bound_logger.error)
    log_method(message, **kwargs)

    if exc is not None:
        marker = getattr(exc, "mark_logged", None)
        if callable(marker):
            marker()
