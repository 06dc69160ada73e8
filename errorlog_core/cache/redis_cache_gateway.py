"""
Redis-backed cache gateway.

Key layout (every key carries the configured prefix):

- ``error_queue``: list used as the work queue (LPUSH producer, BRPOP consumer)
- ``recent_errors``: list holding the newest events, trimmed after each push
- ``error_cache:<key>``: JSON list pages, expiring after the list TTL
- ``stats_cache``: JSON statistics, expiring after the stats TTL
- ``cache_keys_set``: set of live list-page keys, used by bulk invalidation

BRPOP runs on its own client without retries, and its server-side wait is kept
at least ``BLOCKING_POP_MARGIN_SECONDS`` below the socket deadline. A reply for
a popped item therefore always arrives before the client gives up on it.
"""

import time
from typing import List, Optional

import redis
from pydantic import ValidationError as PydanticValidationError
from redis.backoff import NoBackoff
from redis.retry import Retry

from ..constants import BLOCKING_POP_MARGIN_SECONDS, RECENT_ERRORS_SIZE, CacheKey
from ..exceptions import CacheError, CacheInvalidationError, ErrorCode
from ..schemas.error_schema import ERROR_EVENT_LIST, ErrorEvent, ErrorStats
from ..utils.logger import get_logger
from .cache_gateway import CacheGateway


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


def _socket_timeout_of(client: redis.Redis, default: Optional[float]) -> Optional[float]:
    """Read the socket deadline a client was built with, if it exposes one."""
    pool = getattr(client, "connection_pool", None)
    kwargs = getattr(pool, "connection_kwargs", None)
    if isinstance(kwargs, dict) and "socket_timeout" in kwargs:
        value = kwargs["socket_timeout"]
        if value is None or isinstance(value, (int, float)):
            return value
    return default


class RedisCacheGateway(CacheGateway):
    """Cache gateway talking to a Redis server through a pooled sync client."""

    def __init__(
        self,
        redis_url: Optional[str] = None,
        client: Optional[redis.Redis] = None,
        key_prefix: str = "",
        recent_errors_size: int = RECENT_ERRORS_SIZE,
        socket_timeout: float = 5.0,
        blocking_client: Optional[redis.Redis] = None,
        logger=None,
    ):
        """
        Initialize the gateway.

        Args:
            redis_url: Connection URL, used when no client is given
            client: Pre-built Redis client
            key_prefix: Prefix applied to every key
            recent_errors_size: Length of the recent-errors ring
            socket_timeout: Per-call deadline in seconds
            blocking_client: Pre-built client for BRPOP; defaults to one built
                from ``redis_url`` with retries disabled, or to ``client``
            logger: Optional logger instance
        """
        if client is None:
            if not redis_url:
                raise CacheError(
                    "Either redis_url or client is required",
                    error_code=ErrorCode.CONFIGURATION_ERROR,
                )
            client = redis.Redis.from_url(
                redis_url,
                decode_responses=True,
                socket_timeout=socket_timeout,
                socket_connect_timeout=socket_timeout,
            )
            if blocking_client is None:
                blocking_client = redis.Redis.from_url(
                    redis_url,
                    decode_responses=True,
                    socket_timeout=socket_timeout,
                    socket_connect_timeout=socket_timeout,
                    retry=Retry(NoBackoff(), 0),
                )

        self.client = client
        self.blocking_client = blocking_client if blocking_client is not None else client
        self.blocking_socket_timeout = _socket_timeout_of(self.blocking_client, socket_timeout)
        if (
            self.blocking_socket_timeout is not None
            and self.blocking_socket_timeout <= BLOCKING_POP_MARGIN_SECONDS
        ):
            raise CacheError(
                f"Socket timeout must exceed {BLOCKING_POP_MARGIN_SECONDS}s for blocking pops",
                error_code=ErrorCode.CONFIGURATION_ERROR,
                socket_timeout=self.blocking_socket_timeout,
            )

        self.key_prefix = key_prefix
        self.recent_errors_size = recent_errors_size
        self.logger = logger or get_logger()

    def _key(self, name: str) -> str:
        return f"{self.key_prefix}{name}"

    @property
    def _queue_key(self) -> str:
        return self._key(CacheKey.ERROR_QUEUE.value)

    @property
    def _recent_key(self) -> str:
        return self._key(CacheKey.RECENT_ERRORS.value)

    @property
    def _stats_key(self) -> str:
        return self._key(CacheKey.STATS_CACHE.value)

    @property
    def _keys_set_key(self) -> str:
        return self._key(CacheKey.CACHE_KEYS_SET.value)

    def _list_key(self, key: str) -> str:
        return self._key(f"{CacheKey.ERROR_CACHE_PREFIX.value}{key}")

    def enqueue(self, event: ErrorEvent) -> None:
        started = time.perf_counter()
        payload = event.model_dump_json()

        try:
            pipe = self.client.pipeline()
            pipe.lpush(self._queue_key, payload)
            pipe.lpush(self._recent_key, payload)
            pipe.ltrim(self._recent_key, 0, self.recent_errors_size - 1)
            pipe.execute()
        except redis.RedisError as e:
            raise CacheError(
                f"Failed to enqueue error event: {e}",
                error_code=ErrorCode.QUEUE_ERROR,
                cause=e,
                error_event_id=event.id,
            )

        self.logger.debug(
            "Error event enqueued",
            extra={"error_event_id": event.id, "duration_ms": _elapsed_ms(started)},
        )

    def _blocking_wait(self, timeout: float) -> float:
        """Server-side BRPOP wait, kept below the socket deadline."""
        if self.blocking_socket_timeout is None:
            return timeout
        return min(timeout, self.blocking_socket_timeout - BLOCKING_POP_MARGIN_SECONDS)

    def dequeue_blocking(self, timeout: float) -> Optional[ErrorEvent]:
        wait = self._blocking_wait(timeout)
        try:
            result = self.blocking_client.brpop([self._queue_key], timeout=wait)
        except redis.RedisError as e:
            # A socket timeout here may have lost a popped item; never report it as empty
            raise CacheError(
                f"Failed to dequeue error event: {e}",
                error_code=ErrorCode.QUEUE_ERROR,
                cause=e,
                wait_seconds=wait,
            )

        if result is None:
            return None

        _, payload = result
        try:
            return ErrorEvent.model_validate_json(payload)
        except PydanticValidationError as e:
            raise CacheError(
                "Undecodable payload on the work queue",
                error_code=ErrorCode.QUEUE_ERROR,
                cause=e,
            )

    def get_recent_errors(self, limit: int) -> List[ErrorEvent]:
        if limit <= 0:
            return []

        try:
            payloads = self.client.lrange(self._recent_key, 0, limit - 1)
        except redis.RedisError as e:
            raise CacheError(f"Failed to read recent errors: {e}", cause=e)

        events = []
        for payload in payloads:
            try:
                events.append(ErrorEvent.model_validate_json(payload))
            except PydanticValidationError as e:
                self.logger.warning("Skipping undecodable recent error entry", extra={"error": str(e)})
        return events

    def cache_list(self, key: str, events: List[ErrorEvent], ttl: int) -> None:
        started = time.perf_counter()
        full_key = self._list_key(key)
        payload = ERROR_EVENT_LIST.dump_json(events)

        try:
            pipe = self.client.pipeline()
            pipe.set(full_key, payload, ex=ttl)
            pipe.sadd(self._keys_set_key, full_key)
            pipe.execute()
        except redis.RedisError as e:
            raise CacheError(f"Failed to cache error list: {e}", cause=e, cache_key=full_key)

        self.logger.debug(
            "Cache write",
            extra={
                "cache_key": full_key,
                "items": len(events),
                "ttl": ttl,
                "duration_ms": _elapsed_ms(started),
            },
        )

    def get_cached_list(self, key: str) -> Optional[List[ErrorEvent]]:
        started = time.perf_counter()
        full_key = self._list_key(key)

        try:
            payload = self.client.get(full_key)
        except redis.RedisError as e:
            raise CacheError(f"Failed to read cached error list: {e}", cause=e, cache_key=full_key)

        if payload is None:
            self.logger.debug(
                "Cache miss", extra={"cache_key": full_key, "duration_ms": _elapsed_ms(started)}
            )
            return None

        try:
            events = ERROR_EVENT_LIST.validate_json(payload)
        except PydanticValidationError as e:
            raise CacheError("Undecodable cached error list", cause=e, cache_key=full_key)

        self.logger.debug(
            "Cache hit",
            extra={
                "cache_key": full_key,
                "items": len(events),
                "duration_ms": _elapsed_ms(started),
            },
        )
        return events

    def cache_stats(self, stats: ErrorStats, ttl: int) -> None:
        try:
            self.client.set(self._stats_key, stats.model_dump_json(), ex=ttl)
        except redis.RedisError as e:
            raise CacheError(f"Failed to cache stats: {e}", cause=e)

    def get_cached_stats(self) -> Optional[ErrorStats]:
        try:
            payload = self.client.get(self._stats_key)
        except redis.RedisError as e:
            raise CacheError(f"Failed to read cached stats: {e}", cause=e)

        if payload is None:
            return None

        try:
            return ErrorStats.model_validate_json(payload)
        except PydanticValidationError as e:
            raise CacheError("Undecodable cached stats", cause=e)

    def invalidate_all(self) -> None:
        started = time.perf_counter()

        try:
            keys = list(self.client.smembers(self._keys_set_key))
            pipe = self.client.pipeline()
            if keys:
                pipe.delete(*keys)
            pipe.delete(self._keys_set_key, self._stats_key)
            pipe.execute()
        except redis.RedisError as e:
            raise CacheInvalidationError(cause=e)

        self.logger.info(
            "Cache invalidated",
            extra={"keys_deleted": len(keys), "duration_ms": _elapsed_ms(started)},
        )

    def ping(self) -> bool:
        try:
            return bool(self.client.ping())
        except redis.RedisError as e:
            self.logger.warning("Cache ping failed", extra={"error": str(e)})
            return False

    def close(self) -> None:
        self.client.close()
        if self.blocking_client is not self.client:
            self.blocking_client.close()
