"""
Pydantic-based configuration models for the RoomChat server.

Each section is a BaseSettings with its own environment prefix, so for
example CHAT_TYPING_TIMEOUT_MS overrides ChatConfig.typing_timeout_ms.
AppConfig composes the sections and also reads a local .env file.
"""

import json
from typing import Annotated, Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode

from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)


def _parse_env_list(candidate: Any) -> list[str]:
    """Parse a value from the environment as JSON list or CSV."""
    if candidate is None:
        return []
    if isinstance(candidate, list):
        return [str(item).strip() for item in candidate if str(item).strip()]
    s = str(candidate).strip()
    if not s:
        return []
    try:
        loaded = json.loads(s)
        if isinstance(loaded, list):
            return [str(item).strip() for item in loaded if str(item).strip()]
    except json.JSONDecodeError:
        pass
    return [item.strip() for item in s.split(",") if item.strip()]


class ServerConfig(BaseSettings):
    """Server network configuration."""

    host: str = Field(default="127.0.0.1", description="Server bind address")
    port: int = Field(default=3000, description="Server port")

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate port is in valid range."""
        if not 1 <= v <= 65535:
            logger.error("Invalid server port", port=v, valid_range="1-65535")
            raise ValueError("Port must be between 1 and 65535")
        return v

    model_config = {"env_prefix": "SERVER_", "case_sensitive": False, "extra": "ignore"}


class DatabaseConfig(BaseSettings):
    """Storage backend configuration."""

    backend: str = Field(default="memory", description="Storage backend: 'memory' or 'sql'")
    url: str = Field(default="sqlite+aiosqlite:///./data/roomchat.db", description="Async SQLAlchemy database URL")
    echo: bool = Field(default=False, description="Echo SQL statements")

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        """Validate storage backend name."""
        v_lower = v.lower()
        if v_lower not in ("memory", "sql"):
            raise ValueError(f"Database backend must be 'memory' or 'sql', got '{v}'")
        return v_lower

    @model_validator(mode="after")
    def validate_async_url(self) -> "DatabaseConfig":
        """The SQL backend needs an async driver in the URL."""
        if self.backend == "sql":
            if not self.url:
                raise ValueError("Database URL cannot be empty")
            scheme = self.url.split("://", 1)[0]
            if "+" not in scheme:
                logger.error("Database URL validation failed - no async driver", url_preview=self.url[:50])
                raise ValueError("Database URL must name an async driver, e.g. 'sqlite+aiosqlite://'")
        return self

    model_config = {"env_prefix": "DATABASE_", "case_sensitive": False, "extra": "ignore"}


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    environment: str = Field(default="local", description="Logging environment")
    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="human", description="Log format")
    log_base: str = Field(default="logs", description="Base log directory")
    file_logging: bool = Field(default=True, description="Write logs to a rotating file")
    rotation_max_bytes: int = Field(default=10 * 1024 * 1024, description="Log rotation max size in bytes")
    rotation_backup_count: int = Field(default=5, description="Number of backup log files")
    disable_logging: bool = Field(default=False, description="Disable all logging")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate logging environment."""
        valid_environments = ["local", "unit_test", "e2e_test", "production"]
        if v not in valid_environments:
            raise ValueError(f"Environment must be one of {valid_environments}, got '{v}'")
        return v

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}, got '{v}'")
        return v_upper

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate log format."""
        valid_formats = ["json", "human", "colored"]
        if v not in valid_formats:
            raise ValueError(f"Log format must be one of {valid_formats}, got '{v}'")
        return v

    model_config = {"env_prefix": "LOGGING_", "case_sensitive": False, "extra": "ignore"}

    def to_dict(self) -> dict[str, Any]:
        """Dictionary form consumed by setup_enhanced_logging()."""
        return self.model_dump()


class ChatConfig(BaseSettings):
    """Chat engine limits and timings."""

    rate_limit_messages_per_minute: int = Field(default=30, description="Messages allowed per connection per window")
    rate_limit_window_seconds: float = Field(default=60.0, description="Fixed rate window length")
    typing_timeout_ms: int = Field(default=3000, description="Typing indicator auto-stop delay")
    history_limit: int = Field(default=50, description="Messages returned on join")
    max_message_length: int = Field(default=2000, description="Maximum message content length")
    min_username_length: int = Field(default=2, description="Minimum username length")
    max_username_length: int = Field(default=30, description="Maximum username length")
    max_frame_bytes: int = Field(default=16384, description="Largest inbound frame accepted")

    @field_validator("rate_limit_messages_per_minute")
    @classmethod
    def validate_rate_limit(cls, v: int) -> int:
        """Validate rate limits are reasonable."""
        if v < 1 or v > 1000:
            raise ValueError("Rate limit must be between 1 and 1000 messages per window")
        return v

    @field_validator("rate_limit_window_seconds", "typing_timeout_ms", "history_limit", "max_frame_bytes")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        """Timings and sizes must be positive."""
        if v <= 0:
            raise ValueError("Value must be positive")
        return v

    @model_validator(mode="after")
    def validate_username_bounds(self) -> "ChatConfig":
        """Username bounds must form a non-empty range."""
        if not 1 <= self.min_username_length <= self.max_username_length:
            raise ValueError("min_username_length must be between 1 and max_username_length")
        return self

    @property
    def typing_timeout_seconds(self) -> float:
        return self.typing_timeout_ms / 1000.0

    model_config = {"env_prefix": "CHAT_", "case_sensitive": False, "extra": "ignore"}


class CORSConfig(BaseSettings):
    """CORS configuration for the HTTP surface."""

    allow_origins: Annotated[list[str], NoDecode] = Field(default_factory=lambda: ["*"], description="Allowed origins")
    allow_credentials: bool = Field(default=False, description="Allow credentials")
    allow_methods: Annotated[list[str], NoDecode] = Field(default_factory=lambda: ["GET", "OPTIONS"], description="Allowed methods")
    allow_headers: Annotated[list[str], NoDecode] = Field(default_factory=lambda: ["*"], description="Allowed headers")

    @field_validator("allow_origins", "allow_methods", "allow_headers", mode="before")
    @classmethod
    def parse_list(cls, value: object) -> list[str]:
        """Accept JSON lists or comma-separated strings."""
        return _parse_env_list(value)

    model_config = {"env_prefix": "CORS_", "case_sensitive": False, "extra": "ignore"}


class AppConfig(BaseSettings):
    """
    Composite application configuration.

    This is the main configuration class that aggregates all other configs.
    Access via get_config() singleton function.
    """

    server: ServerConfig = Field(default_factory=ServerConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    chat: ChatConfig = Field(default_factory=ChatConfig)
    cors: CORSConfig = Field(default_factory=CORSConfig)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "case_sensitive": False, "extra": "ignore"}

    def to_logging_dict(self) -> dict[str, Any]:
        """Configuration dictionary in the shape setup_enhanced_logging() expects."""
        return {"logging": self.logging.to_dict()}
