"""
Integration tests for ErrorLogPipeline.

Runs the assembled pipeline against SQLite in memory and the in-memory cache,
with the queue worker on its background thread.
"""

import time
from datetime import datetime
from unittest.mock import patch

import pytest

from errorlog_core.cache import InMemoryCacheGateway
from errorlog_core.config import AppConfig, CacheConfig, DatabaseConfig, WorkerConfig
from errorlog_core.constants import CacheBackend, DependencyStatus, HealthStatus
from errorlog_core.exceptions import CacheError, NotFoundError
from errorlog_core.pipeline import ErrorLogPipeline


def wait_until(predicate, timeout=3.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def app_config(tmp_path) -> AppConfig:
    return AppConfig(
        database=DatabaseConfig(connection_string=f"sqlite:///{tmp_path / 'pipeline.db'}"),
        cache=CacheConfig(backend=CacheBackend.MEMORY),
        worker=WorkerConfig(dequeue_timeout=0.05, error_backoff=0.01, shutdown_timeout=2.0),
    )


@pytest.fixture
def pipeline(app_config):
    with ErrorLogPipeline(app_config) as running:
        yield running


class TestPipelineFlow:
    """Test the end-to-end flow."""

    def test_builds_memory_backend(self, pipeline):
        """Test the configured backend is used."""
        assert isinstance(pipeline.cache, InMemoryCacheGateway)
        assert pipeline.worker.is_running

    def test_submit_is_persisted_by_worker(self, pipeline):
        """Test a submitted event becomes readable once the worker stores it."""
        event = pipeline.ingestion.submit({"message": "DB timeout", "source": "backend"})

        assert wait_until(lambda: pipeline.reads.list_errors().total == 1)
        stored = pipeline.reads.get_error(event.id)
        assert stored.fingerprint == event.fingerprint
        assert pipeline.reads.get_stats().total_errors == 1

    def test_resolve_and_delete(self, pipeline):
        """Test the mutation lifecycle through the pipeline."""
        event = pipeline.ingestion.submit({"message": "boom", "source": "frontend"})
        assert wait_until(lambda: pipeline.worker.processed_count == 1)

        assert pipeline.reads.resolve(event.id).resolved is True
        assert pipeline.reads.get_stats().resolution_rate == pytest.approx(100.0)

        pipeline.reads.delete(event.id)
        with pytest.raises(NotFoundError):
            pipeline.reads.get_error(event.id)

    def test_fallback_when_queue_down(self, pipeline):
        """Test events are stored synchronously when enqueue fails."""
        with patch.object(pipeline.cache, "enqueue", side_effect=CacheError("queue down")):
            event = pipeline.ingestion.submit({"message": "boom", "source": "backend"})

        assert pipeline.reads.get_error(event.id).id == event.id


class TestPipelineLifecycle:
    """Test health and shutdown."""

    def test_health(self, pipeline):
        """Test both dependencies report available."""
        health = pipeline.health()

        assert health["status"] == HealthStatus.HEALTHY.value
        assert health["database"] == DependencyStatus.AVAILABLE.value
        assert health["cache"] == DependencyStatus.AVAILABLE.value
        assert health["worker_running"] is True
        assert isinstance(health["timestamp"], datetime)

    def test_health_degraded_without_cache(self, pipeline):
        """Test a lost cache degrades rather than fails health."""
        with patch.object(pipeline.cache, "ping", return_value=False):
            health = pipeline.health()

        assert health["status"] == HealthStatus.DEGRADED.value
        assert health["cache"] == DependencyStatus.UNAVAILABLE.value

    def test_health_unhealthy_without_store(self, pipeline):
        """Test a lost store makes the pipeline unhealthy."""
        with patch.object(pipeline.repository, "ping", return_value=False):
            health = pipeline.health()

        assert health["status"] == HealthStatus.UNHEALTHY.value
        assert health["database"] == DependencyStatus.UNAVAILABLE.value

    def test_shutdown_stops_worker(self, app_config):
        """Test leaving the context stops the worker thread."""
        with ErrorLogPipeline(app_config) as running:
            worker = running.worker
            assert worker.is_running

        assert not worker.is_running

    def test_worker_disabled(self, app_config):
        """Test the worker is not started when disabled."""
        app_config.worker.enabled = False

        with ErrorLogPipeline(app_config) as running:
            assert not running.worker.is_running
