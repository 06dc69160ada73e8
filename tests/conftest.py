"""
Test fixtures for the error log core.

Every test gets a fresh SQLite database file (pooled, so the worker thread and
the test each use their own connection) and a fresh in-memory cache gateway.
Mocks are only used to inject faults.
"""

import uuid
from datetime import timedelta

import pytest

from errorlog_core.cache import InMemoryCacheGateway
from errorlog_core.config import DatabaseConfig, reset_config
from errorlog_core.db import DatabaseManager, init_db, utc_now
from errorlog_core.enums import ErrorLevel
from errorlog_core.exceptions import clear_correlation_id
from errorlog_core.processing import QueueWorker
from errorlog_core.repositories import ErrorRepository
from errorlog_core.schemas import ErrorEvent
from errorlog_core.services import ErrorReadService, IngestionService
from errorlog_core.utils.hash_utils import generate_fingerprint
from errorlog_core.utils.logger import reset_logging


@pytest.fixture(autouse=True)
def clean_globals():
    """Reset process-wide config, logger and correlation id around each test."""
    reset_config()
    reset_logging()
    clear_correlation_id()
    yield
    reset_config()
    reset_logging()
    clear_correlation_id()


@pytest.fixture
def db_manager(tmp_path) -> DatabaseManager:
    """Create a database manager over a private SQLite file."""
    manager = DatabaseManager(
        DatabaseConfig(connection_string=f"sqlite:///{tmp_path / 'errors.db'}")
    )
    init_db(manager)

    yield manager

    manager.drop_tables()
    manager.close()


@pytest.fixture
def cache() -> InMemoryCacheGateway:
    gateway = InMemoryCacheGateway(recent_errors_size=100)
    yield gateway
    gateway.close()


@pytest.fixture
def error_repository(db_manager) -> ErrorRepository:
    return ErrorRepository(db_manager)


@pytest.fixture
def ingestion_service(error_repository, cache) -> IngestionService:
    return IngestionService(error_repository, cache)


@pytest.fixture
def read_service(error_repository, cache) -> ErrorReadService:
    return ErrorReadService(error_repository, cache, list_cache_ttl=120, stats_cache_ttl=300)


@pytest.fixture
def queue_worker(error_repository, cache) -> QueueWorker:
    worker = QueueWorker(error_repository, cache, dequeue_timeout=0.05, error_backoff=0.01)
    yield worker
    worker.stop(timeout=2)


@pytest.fixture
def make_event():
    """
    Factory for fully populated ErrorEvent instances.

    Keyword arguments override any field; ``age`` shifts every timestamp back
    by the given timedelta.
    """

    def _make_event(age: timedelta = timedelta(0), **overrides) -> ErrorEvent:
        when = utc_now() - age
        message = overrides.pop("message", "Database connection timeout")
        stack_trace = overrides.pop("stack_trace", "Traceback (most recent call last):\n  ...")
        fields = {
            "id": str(uuid.uuid4()),
            "timestamp": when,
            "level": ErrorLevel.ERROR,
            "message": message,
            "stack_trace": stack_trace,
            "context": {"request_id": "req-123"},
            "source": "backend",
            "environment": "production",
            "fingerprint": generate_fingerprint(message, stack_trace),
            "first_seen": when,
            "last_seen": when,
            "created_at": when,
            "updated_at": when,
        }
        fields.update(overrides)
        return ErrorEvent(**fields)

    return _make_event
