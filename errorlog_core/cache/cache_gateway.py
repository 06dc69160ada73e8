"""
Abstract cache gateway.

The cache store plays three roles for the pipeline: a FIFO work queue feeding
the queue worker, a bounded ring of the most recently submitted events, and a
TTL cache for list pages and statistics. Implementations must be safe to call
from several threads at once.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from ..schemas.error_schema import ErrorEvent, ErrorStats


class CacheGateway(ABC):
    """Interface every cache backend implements."""

    @abstractmethod
    def enqueue(self, event: ErrorEvent) -> None:
        """
        Push an event onto the work queue and the recent-errors ring.

        Both writes happen together; the ring is trimmed to its configured size.

        Raises:
            CacheError: If the cache store cannot be reached
        """

    @abstractmethod
    def dequeue_blocking(self, timeout: float) -> Optional[ErrorEvent]:
        """
        Pop the oldest queued event, waiting up to ``timeout`` seconds.

        Returns:
            The event, or None if nothing arrived in time

        Raises:
            CacheError: If the store is unreachable or the payload is undecodable
        """

    @abstractmethod
    def get_recent_errors(self, limit: int) -> List[ErrorEvent]:
        """Return up to ``limit`` of the most recently enqueued events, newest first."""

    @abstractmethod
    def cache_list(self, key: str, events: List[ErrorEvent], ttl: int) -> None:
        """Cache one list page under ``key`` and track the key for invalidation."""

    @abstractmethod
    def get_cached_list(self, key: str) -> Optional[List[ErrorEvent]]:
        """Return the cached list page for ``key`` or None on a miss."""

    @abstractmethod
    def cache_stats(self, stats: ErrorStats, ttl: int) -> None:
        """Cache the aggregate statistics."""

    @abstractmethod
    def get_cached_stats(self) -> Optional[ErrorStats]:
        """Return cached statistics or None on a miss."""

    @abstractmethod
    def invalidate_all(self) -> None:
        """
        Drop every cached list page and the cached statistics.

        The work queue and the recent-errors ring are left untouched.

        Raises:
            CacheInvalidationError: If the entries could not be removed
        """

    @abstractmethod
    def ping(self) -> bool:
        """Return True if the cache store is reachable."""

    def close(self) -> None:
        """Release connections held by the gateway."""
