from .cache_gateway import CacheGateway
from .factory import create_cache_gateway
from .inmemory_cache_gateway import InMemoryCacheGateway
from .redis_cache_gateway import RedisCacheGateway

__all__ = [
    "CacheGateway",
    "InMemoryCacheGateway",
    "RedisCacheGateway",
    "create_cache_gateway",
]
