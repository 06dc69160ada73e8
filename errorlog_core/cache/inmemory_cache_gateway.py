"""In-memory cache gateway for testing and local development."""

import threading
import time
from collections import deque
from typing import Deque, Dict, List, Optional, Tuple

from ..constants import RECENT_ERRORS_SIZE
from ..exceptions import CacheError, CacheInvalidationError
from ..schemas.error_schema import ERROR_EVENT_LIST, ErrorEvent, ErrorStats
from ..utils.logger import get_logger
from .cache_gateway import CacheGateway


class InMemoryCacheGateway(CacheGateway):
    """
    Process-local cache gateway.

    Events are stored as JSON so callers never share mutable objects with
    the cache, matching what a network-backed store would hand back.
    """

    def __init__(self, recent_errors_size: int = RECENT_ERRORS_SIZE, logger=None):
        self.recent_errors_size = recent_errors_size
        self.logger = logger or get_logger()

        self._lock = threading.Lock()
        self._not_empty = threading.Condition(self._lock)
        self._queue: Deque[str] = deque()
        self._recent: Deque[str] = deque(maxlen=recent_errors_size)
        # key -> (expires_at on the monotonic clock, payload)
        self._lists: Dict[str, Tuple[float, bytes]] = {}
        self._stats: Optional[Tuple[float, str]] = None
        self._closed = False

    def _check_open(self) -> None:
        if self._closed:
            raise CacheError("In-memory cache gateway is closed")

    def enqueue(self, event: ErrorEvent) -> None:
        payload = event.model_dump_json()
        with self._not_empty:
            self._check_open()
            self._queue.append(payload)
            self._recent.appendleft(payload)
            self._not_empty.notify()

        self.logger.debug("Error event enqueued", extra={"error_event_id": event.id})

    def dequeue_blocking(self, timeout: float) -> Optional[ErrorEvent]:
        with self._not_empty:
            self._check_open()
            if not self._not_empty.wait_for(lambda: self._queue or self._closed, timeout):
                return None
            self._check_open()
            payload = self._queue.popleft()
        return ErrorEvent.model_validate_json(payload)

    def get_recent_errors(self, limit: int) -> List[ErrorEvent]:
        with self._lock:
            self._check_open()
            payloads = list(self._recent)[: max(limit, 0)]
        return [ErrorEvent.model_validate_json(payload) for payload in payloads]

    def cache_list(self, key: str, events: List[ErrorEvent], ttl: int) -> None:
        payload = ERROR_EVENT_LIST.dump_json(events)
        with self._lock:
            self._check_open()
            self._lists[key] = (time.monotonic() + ttl, payload)

        self.logger.debug("Cache write", extra={"cache_key": key, "items": len(events), "ttl": ttl})

    def get_cached_list(self, key: str) -> Optional[List[ErrorEvent]]:
        with self._lock:
            self._check_open()
            entry = self._lists.get(key)
            if entry is not None and entry[0] <= time.monotonic():
                del self._lists[key]
                entry = None

        if entry is None:
            self.logger.debug("Cache miss", extra={"cache_key": key})
            return None

        events = ERROR_EVENT_LIST.validate_json(entry[1])
        self.logger.debug("Cache hit", extra={"cache_key": key, "items": len(events)})
        return events

    def cache_stats(self, stats: ErrorStats, ttl: int) -> None:
        with self._lock:
            self._check_open()
            self._stats = (time.monotonic() + ttl, stats.model_dump_json())

    def get_cached_stats(self) -> Optional[ErrorStats]:
        with self._lock:
            self._check_open()
            entry = self._stats
            if entry is not None and entry[0] <= time.monotonic():
                self._stats = entry = None

        if entry is None:
            return None
        return ErrorStats.model_validate_json(entry[1])

    def invalidate_all(self) -> None:
        with self._lock:
            if self._closed:
                raise CacheInvalidationError("In-memory cache gateway is closed")
            keys_deleted = len(self._lists)
            self._lists.clear()
            self._stats = None

        self.logger.info("Cache invalidated", extra={"keys_deleted": keys_deleted})

    def ping(self) -> bool:
        return not self._closed

    def close(self) -> None:
        with self._not_empty:
            self._closed = True
            self._not_empty.notify_all()

    def queue_size(self) -> int:
        """Number of events waiting on the work queue."""
        with self._lock:
            return len(self._queue)
