"""
Queue worker.

Drains the work queue into the durable store on a single background thread.
Delivery is at-most-once: an event whose store write fails is logged and
dropped, never re-queued.
"""

import threading
from typing import Optional

from ..cache.cache_gateway import CacheGateway
from ..constants import DEQUEUE_TIMEOUT_SECONDS
from ..exceptions import BaseError, CacheError
from ..repositories.error_repository import ErrorRepository
from ..utils.logger import ContextAwareLogger, get_logger

WORKER_THREAD_NAME = "errorlog-queue-worker"


class QueueWorker:
    """Consumes queued error events and persists them one at a time."""

    def __init__(
        self,
        repository: ErrorRepository,
        cache: CacheGateway,
        dequeue_timeout: float = DEQUEUE_TIMEOUT_SECONDS,
        error_backoff: float = 1.0,
        logger: Optional[ContextAwareLogger] = None,
    ):
        """
        Initialize the worker.

        Args:
            repository: Durable store gateway
            cache: Cache gateway holding the work queue
            dequeue_timeout: Seconds each blocking pop waits; bounds shutdown latency
            error_backoff: Seconds to pause after a failed pop
            logger: Optional logger instance
        """
        self.repository = repository
        self.cache = cache
        self.dequeue_timeout = dequeue_timeout
        self.error_backoff = error_backoff
        self.logger = logger or get_logger()

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

        self.processed_count = 0
        self.failed_count = 0

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the worker thread. Does nothing if it is already running."""
        with self._lock:
            if self.is_running:
                self.logger.debug("Queue worker already running")
                return

            self._stop_event.clear()
            self._thread = threading.Thread(target=self.run, name=WORKER_THREAD_NAME, daemon=True)
            self._thread.start()

        self.logger.info(
            "Queue worker started",
            extra={"dequeue_timeout": self.dequeue_timeout, "error_backoff": self.error_backoff},
        )

    def stop(self, timeout: Optional[float] = None) -> None:
        """
        Signal the worker to stop and wait for its thread.

        An event that has already been dequeued is persisted before the loop
        exits.
        """
        self._stop_event.set()

        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
            if thread.is_alive():
                self.logger.warning(
                    "Queue worker did not stop within timeout", extra={"timeout": timeout}
                )
                return

        self.logger.info(
            "Queue worker stopped",
            extra={"processed": self.processed_count, "failed": self.failed_count},
        )

    def run(self) -> None:
        """Loop until stopped. No exception escapes the loop."""
        while not self._stop_event.is_set():
            try:
                self.run_once()
            except Exception as e:
                self.logger.exception(
                    "Unexpected error in queue worker loop", extra={"error": str(e)}
                )
                self._stop_event.wait(self.error_backoff)

    def run_once(self, timeout: Optional[float] = None) -> bool:
        """
        Perform one wait-and-persist cycle.

        Args:
            timeout: Seconds to wait for an event, defaults to ``dequeue_timeout``

        Returns:
            True if an event was persisted
        """
        wait = self.dequeue_timeout if timeout is None else timeout

        try:
            event = self.cache.dequeue_blocking(wait)
        except CacheError as e:
            self.logger.warning(
                "Dequeue failed, backing off",
                extra={"error_details": e.message, "backoff_seconds": self.error_backoff},
            )
            self._stop_event.wait(self.error_backoff)
            return False

        if event is None:
            return False

        try:
            self.repository.create_error(event)
        except Exception as e:
            self.failed_count += 1
            self.logger.error(
                "Dropping error event after store failure",
                extra={
                    "error_event_id": event.id,
                    "error_type": type(e).__name__,
                    "error_details": e.message if isinstance(e, BaseError) else str(e),
                },
            )
            return False

        self.processed_count += 1
        self.logger.debug("Error event persisted", extra={"error_event_id": event.id})

        try:
            self.cache.invalidate_all()
        except CacheError as e:
            self.logger.warning(
                "Cache invalidation failed after persisting",
                extra={"error_event_id": event.id, "error_details": e.message},
            )

        return True
