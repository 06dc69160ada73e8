"""
Centralized configuration management for the error log core.

This module provides a unified configuration system with support for:
- Environment variables
- Runtime configuration
- Validation using Pydantic
"""

import os
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .constants import (
    BLOCKING_POP_MARGIN_SECONDS,
    DEQUEUE_TIMEOUT_SECONDS,
    LIST_CACHE_TTL_SECONDS,
    RECENT_ERRORS_SIZE,
    STATS_CACHE_TTL_SECONDS,
    CacheBackend,
    EnvironmentVariable,
    LogLevel,
)


class DatabaseConfig(BaseModel):
    """Durable store connection configuration."""

    connection_string: str = Field(
        default_factory=lambda: os.getenv(
            EnvironmentVariable.DATABASE_URL.value, "sqlite:///./errorlog.db"
        ),
        description="SQLAlchemy database URL",
    )
    pool_size: int = Field(
        default_factory=lambda: int(os.getenv(EnvironmentVariable.DB_POOL_SIZE.value, "25")),
        description="Connection pool size",
    )
    max_overflow: int = Field(default=0, description="Maximum overflow connections")
    pool_timeout: int = Field(default=30, description="Pool checkout timeout in seconds")
    pool_recycle: int = Field(default=300, description="Maximum connection lifetime in seconds")
    echo: bool = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.DB_ECHO.value, "false").lower()
        == "true",
        description="Echo SQL statements",
    )


class CacheConfig(BaseModel):
    """Cache gateway configuration."""

    backend: CacheBackend = Field(
        default_factory=lambda: os.getenv(
            EnvironmentVariable.CACHE_BACKEND.value, CacheBackend.REDIS.value
        ),
        validate_default=True,
        description="Cache backend (redis or memory)",
    )
    redis_url: str = Field(
        default_factory=lambda: os.getenv(
            EnvironmentVariable.REDIS_URL.value, "redis://localhost:6379/0"
        ),
        description="Redis connection URL",
    )
    socket_timeout: float = Field(
        default=5.0,
        gt=BLOCKING_POP_MARGIN_SECONDS,
        description="Redis socket timeout in seconds; blocking pops wait less than this",
    )
    key_prefix: str = Field(default="", description="Prefix applied to every cache key")
    recent_errors_size: int = Field(
        default=RECENT_ERRORS_SIZE, gt=0, description="Length of the recent errors ring"
    )
    list_ttl_seconds: int = Field(
        default=LIST_CACHE_TTL_SECONDS, gt=0, description="TTL for cached error lists"
    )
    stats_ttl_seconds: int = Field(
        default=STATS_CACHE_TTL_SECONDS, gt=0, description="TTL for cached statistics"
    )


class WorkerConfig(BaseModel):
    """Queue worker configuration."""

    enabled: bool = Field(default=True, description="Start the queue worker with the pipeline")
    dequeue_timeout: float = Field(
        default=DEQUEUE_TIMEOUT_SECONDS, gt=0, description="Blocking dequeue wait in seconds"
    )
    error_backoff: float = Field(
        default=1.0, ge=0, description="Pause after a failed dequeue in seconds"
    )
    shutdown_timeout: float = Field(
        default=10.0, gt=0, description="Maximum time to wait for the worker on shutdown"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.LOG_LEVEL.value, LogLevel.INFO.value),
        validate_default=True,
        description="Logging level",
    )
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format string",
    )

    @field_validator("level")
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = {level.value for level in LogLevel}
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()


class AppConfig(BaseModel):
    """Main application configuration."""

    background_cache_writes: bool = Field(
        default=False, description="Populate read caches on a background thread"
    )

    # Sub-configurations
    database: DatabaseConfig = Field(
        default_factory=DatabaseConfig, description="Database configuration"
    )
    cache: CacheConfig = Field(default_factory=CacheConfig, description="Cache configuration")
    worker: WorkerConfig = Field(default_factory=WorkerConfig, description="Worker configuration")
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create configuration from environment variables."""
        return cls()


# Global configuration instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def set_config(config: AppConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config


def reset_config() -> None:
    """Reset the global configuration instance."""
    global _config
    _config = None
