"""
Pipeline assembly.

Wires the durable store, cache gateway, services and queue worker together
from one AppConfig and owns their lifecycle.
"""

from datetime import UTC, datetime
from typing import Any, Dict, Optional

from .cache.cache_gateway import CacheGateway
from .cache.factory import create_cache_gateway
from .config import AppConfig, get_config
from .constants import DependencyStatus, HealthStatus
from .db.db_config import DatabaseManager, init_db
from .processing.queue_worker import QueueWorker
from .repositories.error_repository import ErrorRepository
from .services.ingestion_service import IngestionService
from .services.read_service import ErrorReadService
from .utils.logger import get_logger


class ErrorLogPipeline:
    """The error ingestion and read pipeline as one unit."""

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        cache: Optional[CacheGateway] = None,
        db_manager: Optional[DatabaseManager] = None,
    ):
        """
        Build every component. Tables are created if missing.

        Args:
            config: Application configuration, defaults to the global one
            cache: Pre-built cache gateway, otherwise chosen by ``config.cache.backend``
            db_manager: Pre-built database manager, otherwise built from ``config.database``
        """
        self.config = config or get_config()
        self.logger = get_logger()

        self.db_manager = db_manager or DatabaseManager(self.config.database)
        init_db(self.db_manager)

        self.cache = cache or create_cache_gateway(self.config.cache)
        self.repository = ErrorRepository(self.db_manager)

        self.ingestion = IngestionService(self.repository, self.cache)
        self.reads = ErrorReadService(
            self.repository,
            self.cache,
            list_cache_ttl=self.config.cache.list_ttl_seconds,
            stats_cache_ttl=self.config.cache.stats_ttl_seconds,
            background_cache_writes=self.config.background_cache_writes,
        )
        self.worker = QueueWorker(
            self.repository,
            self.cache,
            dequeue_timeout=self.config.worker.dequeue_timeout,
            error_backoff=self.config.worker.error_backoff,
        )

    def start(self) -> "ErrorLogPipeline":
        """Start the queue worker if it is enabled."""
        if self.config.worker.enabled:
            self.worker.start()
        else:
            self.logger.info("Queue worker disabled by configuration")
        return self

    def shutdown(self) -> None:
        """Stop the worker, then release cache and database connections."""
        self.worker.stop(timeout=self.config.worker.shutdown_timeout)
        self.cache.close()
        self.db_manager.close()
        self.logger.info("Error log pipeline shut down")

    def health(self) -> Dict[str, Any]:
        """Report reachability of the store and the cache."""
        database = (
            DependencyStatus.AVAILABLE if self.repository.ping() else DependencyStatus.UNAVAILABLE
        )
        cache = DependencyStatus.AVAILABLE if self.cache.ping() else DependencyStatus.UNAVAILABLE

        if database == DependencyStatus.UNAVAILABLE:
            status = HealthStatus.UNHEALTHY
        elif cache == DependencyStatus.UNAVAILABLE:
            status = HealthStatus.DEGRADED
        else:
            status = HealthStatus.HEALTHY

        return {
            "status": status.value,
            "timestamp": datetime.now(UTC),
            "database": database.value,
            "cache": cache.value,
            "worker_running": self.worker.is_running,
        }

    def __enter__(self) -> "ErrorLogPipeline":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()
