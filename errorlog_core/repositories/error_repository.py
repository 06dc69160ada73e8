"""
Error repository: the durable store gateway for error events.

This module provides repository methods for creating, listing, resolving
and deleting error records and for computing aggregate statistics.
"""

from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from sqlalchemy import case, func, text

from ..context.operation_context import operation
from ..db.db_base import utc_now
from ..db.db_config import DatabaseManager
from ..db.db_error_models import ErrorRecord
from ..enums import ErrorLevel
from ..exceptions import not_found
from ..schemas.error_schema import ErrorEvent, ErrorStats
from ..schemas.mixins import as_utc
from .base_repository import BaseRepository


class ErrorRepository(BaseRepository[ErrorRecord]):
    """
    Repository for working with the ErrorRecord model.

    Every public method runs in its own session so the queue worker and
    read-path callers can share one repository across threads.
    """

    def __init__(self, db_manager: DatabaseManager, logger=None):
        """
        Initialize the repository.

        Args:
            db_manager: Database manager providing sessions
            logger: Optional logger instance
        """
        super().__init__(db_manager, ErrorRecord, logger)

    @operation(name="error_create")
    def create_error(self, event: ErrorEvent) -> ErrorEvent:
        """
        Persist an error event exactly as given.

        Args:
            event: Fully populated event (id, timestamps and fingerprint included)

        Returns:
            The stored event

        Raises:
            RepositoryError: If a record with the same id already exists
            StorageUnavailableError: If the store cannot be reached
        """
        with self._session_operation("create_error", event.id) as session:
            record = ErrorRecord(
                id=event.id,
                timestamp=event.timestamp,
                level=event.level.value,
                message=event.message,
                stack_trace=event.stack_trace,
                context=event.context,
                source=event.source,
                environment=event.environment,
                user_agent=event.user_agent,
                ip_address=event.ip_address,
                url=event.url,
                fingerprint=event.fingerprint,
                resolved=event.resolved,
                count=event.count,
                first_seen=event.first_seen,
                last_seen=event.last_seen,
                created_at=event.created_at,
                updated_at=event.updated_at,
            )
            session.add(record)
            session.flush()

            self.logger.debug(
                "Stored error event",
                extra={"error_event_id": event.id, "level": event.level.value, "source": event.source},
            )
            return event

    @operation(name="error_list")
    def get_errors(
        self,
        limit: int,
        offset: int,
        level: Optional[ErrorLevel] = None,
        source: Optional[str] = None,
    ) -> Tuple[List[ErrorEvent], int]:
        """
        List events newest first.

        Args:
            limit: Page size
            offset: Number of matching events to skip
            level: Optional exact level filter
            source: Optional exact source filter

        Returns:
            Tuple of (page of events, total number of matching events)
        """
        with self._session_operation("get_errors", is_read_only=True) as session:
            query = self._apply_filters(
                session.query(ErrorRecord),
                level=level.value if level else None,
                source=source,
            )

            total = query.order_by(None).count()

            query = self._apply_ordering(query, "timestamp", "desc").order_by(ErrorRecord.id.desc())
            records = self._apply_pagination(query, limit, offset).all()

            return [ErrorEvent.model_validate(record) for record in records], total

    @operation(name="error_get_by_id")
    def get_error_by_id(self, error_id: str) -> ErrorEvent:
        """
        Fetch a single event.

        Raises:
            NotFoundError: If no record has this id
        """
        with self._session_operation("get_error_by_id", error_id, is_read_only=True) as session:
            record = session.get(ErrorRecord, error_id)
            if record is None:
                raise not_found("ErrorEvent", error_id=error_id)
            return ErrorEvent.model_validate(record)

    @operation(name="error_resolve")
    def resolve_error(self, error_id: str) -> ErrorEvent:
        """
        Mark an event resolved and refresh its updated_at.

        Resolving an already resolved event is not an error.

        Raises:
            NotFoundError: If no record has this id
        """
        with self._session_operation("resolve_error", error_id) as session:
            record = session.get(ErrorRecord, error_id)
            if record is None:
                raise not_found("ErrorEvent", error_id=error_id)

            record.resolved = True
            record.updated_at = utc_now()
            session.flush()

            return ErrorEvent.model_validate(record)

    @operation(name="error_delete")
    def delete_error(self, error_id: str) -> None:
        """
        Permanently remove an event.

        Raises:
            NotFoundError: If no record has this id
        """
        with self._session_operation("delete_error", error_id) as session:
            deleted = (
                session.query(ErrorRecord)
                .filter(ErrorRecord.id == error_id)
                .delete(synchronize_session=False)
            )
            if not deleted:
                raise not_found("ErrorEvent", error_id=error_id)

    @operation(name="error_stats")
    def get_stats(self, now: Optional[datetime] = None) -> ErrorStats:
        """
        Compute aggregate statistics in a single query.

        "Today" starts at UTC midnight; week and month are the trailing 7 and
        30 days. The 24 hour rate is the count over the last 24 hours divided
        by 24. The resolution rate is a percentage and is 0 when there are no
        events.

        Args:
            now: Reference time, defaults to the current UTC time
        """
        now = as_utc(now) if now else utc_now()
        start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
        week_ago = now - timedelta(days=7)
        month_ago = now - timedelta(days=30)
        day_ago = now - timedelta(hours=24)

        def count_where(condition):
            return func.count(case((condition, 1)))

        with self._session_operation("get_stats", is_read_only=True) as session:
            row = session.query(
                func.count(ErrorRecord.id),
                count_where(ErrorRecord.resolved.is_(True)),
                count_where(ErrorRecord.timestamp >= start_of_day),
                count_where(ErrorRecord.timestamp >= week_ago),
                count_where(ErrorRecord.timestamp >= month_ago),
                count_where(ErrorRecord.timestamp >= day_ago),
            ).one()

        total, resolved, today, week, month, last_24h = (value or 0 for value in row)

        return ErrorStats(
            total_errors=total,
            resolved_errors=resolved,
            errors_today=today,
            errors_this_week=week,
            errors_this_month=month,
            error_rate_24h=last_24h / 24,
            resolution_rate=(resolved / total * 100) if total else 0.0,
        )

    def ping(self) -> bool:
        """Return True if the store answers a trivial query."""
        try:
            with self._session_operation("ping", is_read_only=True) as session:
                session.execute(text("SELECT 1"))
            return True
        except Exception as e:
            self.logger.warning("Durable store ping failed", extra={"error": str(e)})
            return False
