"""
Tests for ErrorReadService.

Real SQLite store and in-memory cache; failures are injected with mocks.
"""

import threading
from datetime import timedelta
from unittest.mock import patch

import pytest

from errorlog_core.enums import ErrorLevel
from errorlog_core.exceptions import (
    CacheError,
    NotFoundError,
    ServiceError,
    StorageUnavailableError,
    ValidationError,
)
from errorlog_core.services import ErrorReadService, list_cache_key

UNKNOWN_ID = "7f1b7a7e-0000-4000-8000-000000000000"


@pytest.fixture
def stored_events(error_repository, make_event):
    """Two stored events, the second one newer."""
    older = make_event(age=timedelta(minutes=5), message="older")
    newer = make_event(message="newer")
    error_repository.create_error(older)
    error_repository.create_error(newer)
    return older, newer


class TestListErrors:
    """Test list reads."""

    def test_cold_then_cached(self, read_service, cache, stored_events):
        """Test the true total on a miss and the approximation on a hit."""
        older, newer = stored_events

        cold = read_service.list_errors(limit=1)
        warm = read_service.list_errors(limit=1)

        assert [e.id for e in cold.errors] == [newer.id]
        assert cold.total == 2
        assert cold.page == 1
        assert [e.id for e in warm.errors] == [newer.id]
        assert warm.total == 1
        assert cache.get_cached_list("list_1_0__") is not None

    def test_cached_total_includes_offset(self, read_service, stored_events):
        """Test the hit total is page length plus offset."""
        older, _ = stored_events

        cold = read_service.list_errors(limit=1, offset=1)
        warm = read_service.list_errors(limit=1, offset=1)

        assert [e.id for e in cold.errors] == [older.id]
        assert cold.total == 2
        assert cold.page == 2
        assert warm.total == 2

    def test_empty_page_not_cached(self, read_service, cache):
        """Test an empty result is not written to the cache."""
        result = read_service.list_errors()

        assert result.errors == []
        assert result.total == 0
        assert cache.get_cached_list(list_cache_key(50, 0, None, None)) is None

    def test_filters_use_distinct_keys(self, read_service, error_repository, make_event):
        """Test each filter combination is cached under its own key."""
        error_repository.create_error(make_event(level=ErrorLevel.WARNING, source="frontend"))
        error_repository.create_error(make_event(level=ErrorLevel.ERROR, source="backend"))

        warnings = read_service.list_errors(level="WARNING")
        backend = read_service.list_errors(source="backend")

        assert [e.level for e in warnings.errors] == [ErrorLevel.WARNING]
        assert [e.source for e in backend.errors] == ["backend"]
        assert list_cache_key(50, 0, ErrorLevel.WARNING, None) == "list_50_0_warning_"
        assert list_cache_key(50, 0, None, "backend") == "list_50_0__backend"

    @pytest.mark.parametrize(
        "kwargs",
        [{"limit": 0}, {"limit": 1001}, {"offset": -1}, {"level": "fatal"}],
    )
    def test_invalid_arguments(self, read_service, kwargs):
        """Test bad pagination or level raises ValidationError."""
        with pytest.raises(ValidationError):
            read_service.list_errors(**kwargs)

    def test_cache_failure_falls_back_to_store(self, read_service, cache, stored_events):
        """Test cache read and write failures are treated as a miss."""
        with patch.object(cache, "get_cached_list", side_effect=CacheError("down")), patch.object(
            cache, "cache_list", side_effect=CacheError("down")
        ):
            result = read_service.list_errors()

        assert result.total == 2

    def test_store_failure_on_miss(self, read_service, error_repository):
        """Test a store failure on a miss propagates."""
        with patch.object(
            error_repository, "get_errors", side_effect=StorageUnavailableError("db down")
        ):
            with pytest.raises(StorageUnavailableError):
                read_service.list_errors()

    def test_unexpected_error_is_wrapped(self, read_service, error_repository):
        """Test non-taxonomy failures are wrapped in ServiceError."""
        with patch.object(error_repository, "get_errors", side_effect=RuntimeError("bug")):
            with pytest.raises(ServiceError):
                read_service.list_errors()


class TestGetError:
    """Test detail reads."""

    def test_get_existing(self, read_service, stored_events):
        _, newer = stored_events

        assert read_service.get_error(newer.id).message == "newer"

    def test_malformed_id(self, read_service):
        """Test a non-UUID id is a validation error."""
        with pytest.raises(ValidationError):
            read_service.get_error("not-a-uuid")

    def test_unknown_id(self, read_service):
        with pytest.raises(NotFoundError):
            read_service.get_error(UNKNOWN_ID)


class TestResolve:
    """Test resolving events."""

    def test_resolve_is_idempotent(self, read_service, stored_events):
        """Test resolving twice succeeds."""
        _, newer = stored_events

        first = read_service.resolve(newer.id)
        second = read_service.resolve(newer.id)

        assert first.resolved is True
        assert second.resolved is True
        assert read_service.get_error(newer.id).resolved is True

    def test_resolve_invalidates_caches(self, read_service, stored_events):
        """Test the next list and stats reads reflect the mutation."""
        _, newer = stored_events
        assert read_service.list_errors().errors[0].resolved is False
        assert read_service.get_stats().resolved_errors == 0

        read_service.resolve(newer.id)

        assert read_service.list_errors().errors[0].resolved is True
        assert read_service.get_stats().resolved_errors == 1

    def test_resolve_unknown(self, read_service, cache, make_event):
        """Test unknown ids raise NotFoundError and leave caches alone."""
        cache.cache_list("list_50_0__", [make_event()], ttl=120)

        with pytest.raises(NotFoundError):
            read_service.resolve(UNKNOWN_ID)

        assert cache.get_cached_list("list_50_0__") is not None


class TestDelete:
    """Test deleting events."""

    def test_delete_then_get(self, read_service, stored_events):
        """Test a deleted event is gone and the list reflects it."""
        older, newer = stored_events
        assert read_service.list_errors().total == 2

        read_service.delete(newer.id)

        with pytest.raises(NotFoundError):
            read_service.get_error(newer.id)
        listed = read_service.list_errors()
        assert [e.id for e in listed.errors] == [older.id]
        assert listed.total == 1

    def test_delete_unknown(self, read_service):
        with pytest.raises(NotFoundError):
            read_service.delete(UNKNOWN_ID)


class TestGetStats:
    """Test stats reads."""

    def test_stats_cached(self, read_service, error_repository, stored_events):
        """Test the second read is served from cache."""
        first = read_service.get_stats()

        with patch.object(error_repository, "get_stats") as store_stats:
            second = read_service.get_stats()

        store_stats.assert_not_called()
        assert first.total_errors == 2
        assert second == first

    def test_cache_failure_falls_back(self, read_service, cache, stored_events):
        """Test stats are computed from the store when the cache fails."""
        with patch.object(cache, "get_cached_stats", side_effect=CacheError("down")):
            assert read_service.get_stats().total_errors == 2


class TestRecentErrors:
    """Test the recent-errors view."""

    def test_newest_first_before_persistence(self, read_service, ingestion_service):
        """Test submitted events appear before the worker stores them."""
        first = ingestion_service.submit({"message": "one", "source": "backend"})
        second = ingestion_service.submit({"message": "two", "source": "backend"})

        recent = read_service.recent_errors(limit=20)

        assert [e.id for e in recent] == [second.id, first.id]

    def test_cache_failure_returns_empty(self, read_service, cache):
        with patch.object(cache, "get_recent_errors", side_effect=CacheError("down")):
            assert read_service.recent_errors() == []

    def test_invalid_limit(self, read_service):
        with pytest.raises(ValidationError):
            read_service.recent_errors(limit=0)


class TestBackgroundCacheWrites:
    """Test cache population on a background thread."""

    def test_population_runs_off_thread(self, error_repository, cache, stored_events):
        """Test the page is cached by a daemon thread."""
        service = ErrorReadService(error_repository, cache, background_cache_writes=True)
        written = threading.Event()
        writer_threads = []
        original = cache.cache_list

        def cache_list(*args, **kwargs):
            writer_threads.append(threading.current_thread())
            original(*args, **kwargs)
            written.set()

        with patch.object(cache, "cache_list", side_effect=cache_list):
            result = service.list_errors()
            assert written.wait(2.0)

        assert result.total == 2
        assert writer_threads[0] is not threading.current_thread()
        assert writer_threads[0].daemon is True
        assert cache.get_cached_list("list_50_0__") is not None
