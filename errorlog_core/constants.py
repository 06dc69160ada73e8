"""
Constants and enums for the error log core.

This module centralizes the magic strings used throughout the package
(environment variables, cache key names, log levels) so the gateways,
services and configuration agree on them.
"""

from enum import Enum


class LogLevel(str, Enum):
    """Standard logging levels."""

    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class EnvironmentVariable(str, Enum):
    """Standard environment variable names."""

    DATABASE_URL = "DATABASE_URL"
    DB_POOL_SIZE = "DB_POOL_SIZE"
    DB_ECHO = "DB_ECHO"
    REDIS_URL = "REDIS_URL"
    CACHE_BACKEND = "CACHE_BACKEND"
    LOG_LEVEL = "LOG_LEVEL"


class CacheKey(str, Enum):
    """Key names used in the cache store."""

    ERROR_QUEUE = "error_queue"
    RECENT_ERRORS = "recent_errors"
    ERROR_CACHE_PREFIX = "error_cache:"
    STATS_CACHE = "stats_cache"
    CACHE_KEYS_SET = "cache_keys_set"


class CacheBackend(str, Enum):
    """Supported cache gateway backends."""

    REDIS = "redis"
    MEMORY = "memory"


class DependencyStatus(str, Enum):
    """Status of external dependencies."""

    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


class HealthStatus(str, Enum):
    """Overall pipeline health."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


# Defaults carried over from the original service
DEFAULT_ENVIRONMENT = "production"
FINGERPRINT_LENGTH = 16
RECENT_ERRORS_SIZE = 100
LIST_CACHE_TTL_SECONDS = 120
STATS_CACHE_TTL_SECONDS = 300
DEQUEUE_TIMEOUT_SECONDS = 5.0
MAX_LIST_LIMIT = 1000

# Headroom between a BRPOP's server-side wait and the client's socket deadline
BLOCKING_POP_MARGIN_SECONDS = 1.0
