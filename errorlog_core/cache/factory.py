"""Factory for creating cache gateway instances based on configuration."""

from typing import Optional

from ..config import CacheConfig, get_config
from ..constants import CacheBackend
from ..exceptions import CacheError, ErrorCode
from .cache_gateway import CacheGateway
from .inmemory_cache_gateway import InMemoryCacheGateway
from .redis_cache_gateway import RedisCacheGateway


def _build_redis(config: CacheConfig) -> CacheGateway:
    return RedisCacheGateway(
        redis_url=config.redis_url,
        key_prefix=config.key_prefix,
        recent_errors_size=config.recent_errors_size,
        socket_timeout=config.socket_timeout,
    )


def _build_memory(config: CacheConfig) -> CacheGateway:
    return InMemoryCacheGateway(recent_errors_size=config.recent_errors_size)


_BUILDERS = {
    CacheBackend.REDIS: _build_redis,
    CacheBackend.MEMORY: _build_memory,
}


def create_cache_gateway(config: Optional[CacheConfig] = None) -> CacheGateway:
    """
    Create the cache gateway selected by ``config.backend``.

    Args:
        config: Cache configuration, defaults to the global configuration

    Returns:
        A ready-to-use gateway; the Redis client connects lazily on first use

    Raises:
        CacheError: If the backend is not supported
    """
    config = config or get_config().cache

    builder = _BUILDERS.get(config.backend)
    if builder is None:
        raise CacheError(
            f"Unsupported cache backend: {config.backend}",
            error_code=ErrorCode.CONFIGURATION_ERROR,
            backend=str(config.backend),
        )
    return builder(config)
