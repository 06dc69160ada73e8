"""
Base service implementation with common functionality for all services.

This module provides a base class with shared methods and patterns to
reduce duplication across service implementations.
"""

import uuid
from typing import NoReturn, Optional

from ..cache.cache_gateway import CacheGateway
from ..exceptions import BaseError, CacheError, ErrorCode, ServiceError, validation_failed
from ..repositories.error_repository import ErrorRepository
from ..utils.logger import ContextAwareLogger, get_logger


class BaseService:
    """Base service with common functionality for all services."""

    def __init__(
        self,
        repository: ErrorRepository,
        cache: CacheGateway,
        logger: Optional[ContextAwareLogger] = None,
    ):
        """
        Initialize the base service.

        Args:
            repository: Durable store gateway
            cache: Cache gateway
            logger: Optional logger instance
        """
        self.repository = repository
        self.cache = cache
        self.logger = logger or get_logger()

    def _handle_service_exception(
        self, operation: str, exception: Exception, entity_id: Optional[str] = None  # noqa
    ) -> NoReturn:
        """
        Handle and log service exceptions consistently.

        Errors that are already part of the taxonomy (validation, not found,
        storage unavailable) propagate unchanged; anything else is wrapped.

        Args:
            operation: Operation being performed
            exception: Exception that occurred
            entity_id: Optional ID of the entity involved

        Raises:
            The original BaseError, or a ServiceError wrapping anything else
        """
        if isinstance(exception, BaseError):
            raise exception

        error_msg = f"Error in {operation}: {str(exception)}"
        self.logger.error(
            error_msg,
            extra={
                "operation": operation,
                "entity_id": entity_id,
                "error_type": type(exception).__name__,
                "error_details": str(exception),
            },
            exc_info=True,
        )
        raise ServiceError(
            error_msg,
            error_code=ErrorCode.INTERNAL_ERROR,
            operation=operation,
            entity_id=entity_id,
            cause=exception,
        )

    def _invalidate_caches(self, operation: str, entity_id: Optional[str] = None) -> None:
        """
        Drop cached list pages and stats after a write.

        A failed invalidation is logged and swallowed; stale entries expire on
        their own TTL.
        """
        try:
            self.cache.invalidate_all()
        except CacheError as e:
            self.logger.warning(
                f"Cache invalidation failed after {operation}",
                extra={
                    "operation": operation,
                    "entity_id": entity_id,
                    "error_code": e.error_code.value,
                    "error_details": e.message,
                },
            )

    @staticmethod
    def _validate_error_id(error_id: str) -> str:
        """
        Reject ids that are not UUIDs before touching the store.

        Returns:
            The id in canonical lowercase form
        """
        try:
            return str(uuid.UUID(str(error_id)))
        except (ValueError, TypeError, AttributeError) as e:
            raise validation_failed("error_id", error_id, "must be a UUID", cause=e)
