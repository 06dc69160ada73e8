from .base_service import BaseService
from .ingestion_service import IngestionService
from .read_service import ErrorReadService, list_cache_key

__all__ = ["BaseService", "ErrorReadService", "IngestionService", "list_cache_key"]
