"""
Tests for ErrorRepository.

Uses a real SQLite in-memory database; no mocks.
"""

from datetime import UTC, datetime, timedelta

import pytest

from errorlog_core.enums import ErrorLevel
from errorlog_core.exceptions import (
    ErrorCode,
    NotFoundError,
    RepositoryError,
    StorageUnavailableError,
)

NOW = datetime(2024, 6, 15, 12, 0, 0, tzinfo=UTC)


def at(delta: timedelta) -> dict:
    """Timestamp overrides placing an event ``delta`` before NOW."""
    when = NOW - delta
    return {
        "timestamp": when,
        "first_seen": when,
        "last_seen": when,
        "created_at": when,
        "updated_at": when,
    }


class TestCreateError:
    """Test storing events."""

    def test_create_and_read_back(self, error_repository, make_event):
        """Test every field survives the round trip through the store."""
        event = make_event(
            level=ErrorLevel.WARNING,
            user_agent="Mozilla/5.0",
            ip_address="2001:db8::1",
            url="https://example.com/checkout",
            context={"cart": {"items": 3}, "flags": [True, None]},
        )

        stored = error_repository.create_error(event)
        fetched = error_repository.get_error_by_id(event.id)

        assert stored == event
        assert fetched.id == event.id
        assert fetched.level == ErrorLevel.WARNING
        assert fetched.context == {"cart": {"items": 3}, "flags": [True, None]}
        assert fetched.fingerprint == event.fingerprint
        assert fetched.ip_address == "2001:db8::1"
        assert fetched.resolved is False
        assert fetched.count == 1
        assert fetched.timestamp == event.timestamp
        assert fetched.timestamp.tzinfo is not None

    def test_duplicate_id_rejected(self, error_repository, make_event):
        """Test inserting the same id twice is a duplicate error."""
        event = make_event()
        error_repository.create_error(event)

        with pytest.raises(RepositoryError) as exc_info:
            error_repository.create_error(event)

        assert exc_info.value.error_code == ErrorCode.DUPLICATE


class TestGetErrors:
    """Test listing events."""

    def test_newest_first_with_total(self, error_repository, make_event):
        """Test ordering by timestamp descending and the true total."""
        oldest = make_event(**at(timedelta(hours=3)))
        middle = make_event(**at(timedelta(hours=2)))
        newest = make_event(**at(timedelta(hours=1)))
        for event in (middle, oldest, newest):
            error_repository.create_error(event)

        events, total = error_repository.get_errors(limit=2, offset=0)

        assert total == 3
        assert [e.id for e in events] == [newest.id, middle.id]

        events, total = error_repository.get_errors(limit=2, offset=2)
        assert total == 3
        assert [e.id for e in events] == [oldest.id]

    def test_filters(self, error_repository, make_event):
        """Test level and source filters are exact matches and combine."""
        error_repository.create_error(make_event(level=ErrorLevel.ERROR, source="backend"))
        error_repository.create_error(make_event(level=ErrorLevel.WARNING, source="backend"))
        error_repository.create_error(make_event(level=ErrorLevel.ERROR, source="frontend"))

        _, by_level = error_repository.get_errors(10, 0, level=ErrorLevel.ERROR)
        _, by_source = error_repository.get_errors(10, 0, source="backend")
        events, both = error_repository.get_errors(
            10, 0, level=ErrorLevel.ERROR, source="frontend"
        )
        _, none = error_repository.get_errors(10, 0, source="Backend")

        assert by_level == 2
        assert by_source == 2
        assert both == 1
        assert events[0].source == "frontend"
        assert none == 0

    def test_empty_store(self, error_repository):
        """Test listing an empty store."""
        assert error_repository.get_errors(50, 0) == ([], 0)


class TestGetErrorById:
    """Test fetching single events."""

    def test_unknown_id(self, error_repository):
        """Test an unknown id raises NotFoundError."""
        with pytest.raises(NotFoundError):
            error_repository.get_error_by_id("7f1b7a7e-0000-4000-8000-000000000000")


class TestResolveError:
    """Test resolving events."""

    def test_resolve_sets_flag_and_updated_at(self, error_repository, make_event):
        """Test resolve flips the flag and refreshes updated_at."""
        event = make_event(**at(timedelta(days=1)))
        error_repository.create_error(event)

        resolved = error_repository.resolve_error(event.id)

        assert resolved.resolved is True
        assert resolved.updated_at > event.updated_at
        assert error_repository.get_error_by_id(event.id).resolved is True

    def test_resolve_is_idempotent(self, error_repository, make_event):
        """Test resolving twice succeeds and keeps the event resolved."""
        event = make_event()
        error_repository.create_error(event)

        first = error_repository.resolve_error(event.id)
        second = error_repository.resolve_error(event.id)

        assert first.resolved is True
        assert second.resolved is True
        assert second.updated_at >= first.updated_at

    def test_resolve_unknown(self, error_repository):
        """Test resolving an unknown id raises NotFoundError."""
        with pytest.raises(NotFoundError):
            error_repository.resolve_error("7f1b7a7e-0000-4000-8000-000000000000")


class TestDeleteError:
    """Test deleting events."""

    def test_delete_then_get(self, error_repository, make_event):
        """Test a deleted event is gone."""
        event = make_event()
        error_repository.create_error(event)

        error_repository.delete_error(event.id)

        with pytest.raises(NotFoundError):
            error_repository.get_error_by_id(event.id)

    def test_delete_unknown(self, error_repository):
        """Test deleting an unknown id raises NotFoundError."""
        with pytest.raises(NotFoundError):
            error_repository.delete_error("7f1b7a7e-0000-4000-8000-000000000000")


class TestGetStats:
    """Test aggregate statistics."""

    def test_empty_store(self, error_repository):
        """Test all figures are zero without events."""
        stats = error_repository.get_stats(now=NOW)

        assert stats.total_errors == 0
        assert stats.resolution_rate == 0.0
        assert stats.error_rate_24h == 0.0

    def test_windows_and_rates(self, error_repository, make_event):
        """Test today, week, month, 24 hour rate and resolution rate."""
        one_hour = make_event(**at(timedelta(hours=1)))
        yesterday_late = make_event(**at(timedelta(hours=13)))
        three_days = make_event(**at(timedelta(days=3)))
        ten_days = make_event(**at(timedelta(days=10)))
        forty_days = make_event(**at(timedelta(days=40)))
        for event in (one_hour, yesterday_late, three_days, ten_days, forty_days):
            error_repository.create_error(event)
        error_repository.resolve_error(one_hour.id)
        error_repository.resolve_error(three_days.id)

        stats = error_repository.get_stats(now=NOW)

        assert stats.total_errors == 5
        assert stats.resolved_errors == 2
        assert stats.errors_today == 1
        assert stats.errors_this_week == 3
        assert stats.errors_this_month == 4
        assert stats.error_rate_24h == pytest.approx(2 / 24)
        assert stats.resolution_rate == pytest.approx(40.0)


class TestStoreFailures:
    """Test database failures are surfaced as storage errors."""

    def test_missing_schema_is_unavailable(self, error_repository, db_manager):
        """Test a failing statement maps to StorageUnavailableError."""
        db_manager.drop_tables()

        with pytest.raises(StorageUnavailableError):
            error_repository.get_errors(50, 0)

    def test_ping(self, error_repository, db_manager):
        """Test ping reports reachability."""
        assert error_repository.ping() is True
