"""
Read service.

Serves list, detail and statistics reads cache-first over the durable store,
and applies resolve and delete mutations followed by cache invalidation.
"""

import threading
from typing import Callable, List, Optional, Union

from ..constants import LIST_CACHE_TTL_SECONDS, MAX_LIST_LIMIT, STATS_CACHE_TTL_SECONDS
from ..context.operation_context import operation
from ..enums import ErrorLevel
from ..exceptions import CacheError, validation_failed
from ..schemas.error_schema import ErrorEvent, ErrorListResult, ErrorStats
from .base_service import BaseService


def list_cache_key(
    limit: int, offset: int, level: Optional[ErrorLevel], source: Optional[str]
) -> str:
    """Cache key for one list page; absent filters render as empty segments."""
    return f"list_{limit}_{offset}_{level.value if level else ''}_{source or ''}"


class ErrorReadService(BaseService):
    """Service for querying and managing stored error events."""

    def __init__(
        self,
        repository,
        cache,
        list_cache_ttl: int = LIST_CACHE_TTL_SECONDS,
        stats_cache_ttl: int = STATS_CACHE_TTL_SECONDS,
        background_cache_writes: bool = False,
        logger=None,
    ):
        """
        Initialize the read service.

        Args:
            repository: Durable store gateway
            cache: Cache gateway
            list_cache_ttl: Seconds a cached list page stays valid
            stats_cache_ttl: Seconds cached statistics stay valid
            background_cache_writes: Populate caches on a daemon thread instead of inline
            logger: Optional logger instance
        """
        super().__init__(repository, cache, logger)
        self.list_cache_ttl = list_cache_ttl
        self.stats_cache_ttl = stats_cache_ttl
        self.background_cache_writes = background_cache_writes

    @operation(name="error_list")
    def list_errors(
        self,
        limit: int = 50,
        offset: int = 0,
        level: Union[ErrorLevel, str, None] = None,
        source: Optional[str] = None,
    ) -> ErrorListResult:
        """
        List error events newest first.

        On a cache hit the total is approximated as the page length plus the
        offset; a cold read returns the true number of matching events.

        Raises:
            ValidationError: If pagination or the level filter is invalid
            StorageUnavailableError: If the store cannot be reached on a miss
        """
        self._validate_pagination(limit, offset)
        parsed_level = self._parse_level(level)
        source = source or None
        cache_key = list_cache_key(limit, offset, parsed_level, source)
        page = offset // limit + 1

        try:
            cached = self._read_cache(lambda: self.cache.get_cached_list(cache_key), cache_key)
            if cached is not None:
                return ErrorListResult(
                    errors=cached, total=len(cached) + offset, page=page, limit=limit
                )

            events, total = self.repository.get_errors(limit, offset, parsed_level, source)
            if events:
                self._write_cache(
                    lambda: self.cache.cache_list(cache_key, events, self.list_cache_ttl),
                    cache_key,
                )

            return ErrorListResult(errors=events, total=total, page=page, limit=limit)
        except Exception as e:
            self._handle_service_exception("list_errors", e)

    @operation(name="error_get")
    def get_error(self, error_id: str) -> ErrorEvent:
        """
        Fetch one event from the store.

        Raises:
            ValidationError: If the id is not a UUID
            NotFoundError: If no event has this id
        """
        error_id = self._validate_error_id(error_id)
        try:
            return self.repository.get_error_by_id(error_id)
        except Exception as e:
            self._handle_service_exception("get_error", e, error_id)

    @operation(name="error_resolve")
    def resolve(self, error_id: str) -> ErrorEvent:
        """
        Mark an event resolved. Resolving twice is not an error.

        Raises:
            ValidationError: If the id is not a UUID
            NotFoundError: If no event has this id
        """
        error_id = self._validate_error_id(error_id)
        try:
            event = self.repository.resolve_error(error_id)
            self._invalidate_caches("resolve", error_id)
            self.logger.info("Error event resolved", extra={"error_event_id": error_id})
            return event
        except Exception as e:
            self._handle_service_exception("resolve", e, error_id)

    @operation(name="error_delete")
    def delete(self, error_id: str) -> None:
        """
        Permanently remove an event.

        Raises:
            ValidationError: If the id is not a UUID
            NotFoundError: If no event has this id
        """
        error_id = self._validate_error_id(error_id)
        try:
            self.repository.delete_error(error_id)
            self._invalidate_caches("delete", error_id)
            self.logger.info("Error event deleted", extra={"error_event_id": error_id})
        except Exception as e:
            self._handle_service_exception("delete", e, error_id)

    @operation(name="error_stats")
    def get_stats(self) -> ErrorStats:
        """Aggregate statistics, served from cache when fresh."""
        try:
            cached = self._read_cache(self.cache.get_cached_stats, "stats")
            if cached is not None:
                return cached

            stats = self.repository.get_stats()
            self._write_cache(lambda: self.cache.cache_stats(stats, self.stats_cache_ttl), "stats")
            return stats
        except Exception as e:
            self._handle_service_exception("get_stats", e)

    @operation(name="error_recent")
    def recent_errors(self, limit: int = 20) -> List[ErrorEvent]:
        """
        Most recently submitted events, newest first.

        Events show up here as soon as they are queued, before they are
        persisted. Returns an empty list when the cache is unavailable.
        """
        if limit < 1:
            raise validation_failed("limit", limit, "must be at least 1")

        try:
            return self.cache.get_recent_errors(limit)
        except CacheError as e:
            self.logger.warning(
                "Recent errors unavailable", extra={"error_details": e.message, "limit": limit}
            )
            return []

    @staticmethod
    def _validate_pagination(limit: int, offset: int) -> None:
        if not isinstance(limit, int) or isinstance(limit, bool) or not 1 <= limit <= MAX_LIST_LIMIT:
            raise validation_failed("limit", limit, f"must be between 1 and {MAX_LIST_LIMIT}")
        if not isinstance(offset, int) or isinstance(offset, bool) or offset < 0:
            raise validation_failed("offset", offset, "must be zero or greater")

    @staticmethod
    def _parse_level(level: Union[ErrorLevel, str, None]) -> Optional[ErrorLevel]:
        if level is None or level == "":
            return None
        if isinstance(level, ErrorLevel):
            return level
        try:
            return ErrorLevel(str(level).lower())
        except ValueError as e:
            raise validation_failed(
                "level", level, f"must be one of {', '.join(ErrorLevel.values())}", cause=e
            )

    def _read_cache(self, read: Callable, cache_key: str):
        """Run a cache read, treating any cache failure as a miss."""
        try:
            return read()
        except CacheError as e:
            self.logger.warning(
                "Cache read failed, falling back to store",
                extra={"cache_key": cache_key, "error_details": e.message},
            )
            return None

    def _write_cache(self, write: Callable[[], None], cache_key: str) -> None:
        """Populate a cache entry inline or on a daemon thread."""
        if self.background_cache_writes:
            threading.Thread(
                target=self._safe_write,
                args=(write, cache_key),
                name="errorlog-cache-writer",
                daemon=True,
            ).start()
        else:
            self._safe_write(write, cache_key)

    def _safe_write(self, write: Callable[[], None], cache_key: str) -> None:
        try:
            write()
        except CacheError as e:
            self.logger.warning(
                "Cache write failed", extra={"cache_key": cache_key, "error_details": e.message}
            )
