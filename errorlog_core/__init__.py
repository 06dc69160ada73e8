"""Error ingestion and read-through cache pipeline."""

from .cache import CacheGateway, InMemoryCacheGateway, RedisCacheGateway, create_cache_gateway
from .config import AppConfig, get_config, reset_config, set_config
from .enums import ErrorLevel
from .pipeline import ErrorLogPipeline
from .processing import QueueWorker
from .repositories import ErrorRepository
from .schemas import ErrorEvent, ErrorEventCreate, ErrorListResult, ErrorStats
from .services import ErrorReadService, IngestionService

__version__ = "0.1.0"

__all__ = [
    "AppConfig",
    "CacheGateway",
    "ErrorEvent",
    "ErrorEventCreate",
    "ErrorLevel",
    "ErrorListResult",
    "ErrorLogPipeline",
    "ErrorReadService",
    "ErrorRepository",
    "ErrorStats",
    "InMemoryCacheGateway",
    "IngestionService",
    "QueueWorker",
    "RedisCacheGateway",
    "create_cache_gateway",
    "get_config",
    "reset_config",
    "set_config",
]
