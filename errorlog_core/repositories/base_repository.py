"""
Base repository implementation with common functionality for all repositories.

This module provides a base class with shared session handling and database
error mapping so concrete repositories only express their queries.
"""

from contextlib import contextmanager
from typing import Any, Generic, Iterator, NoReturn, Optional, Type, TypeVar

from sqlalchemy import asc, desc
from sqlalchemy.exc import (
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from ..db.db_config import DatabaseManager
from ..exceptions import BaseError, ErrorCode, RepositoryError, StorageUnavailableError
from ..utils.logger import ContextAwareLogger, get_logger

T = TypeVar("T")

# Failures that mean the store itself is unreachable or exhausted
_CONNECTION_ERRORS = (OperationalError, InterfaceError, PoolTimeoutError)


class BaseRepository(Generic[T]):
    """Base repository with common functionality for all repositories."""

    def __init__(
        self,
        db_manager: DatabaseManager,
        entity_class: Type[T],
        logger: Optional[ContextAwareLogger] = None,
    ):
        """
        Initialize the base repository.

        Args:
            db_manager: Database manager owning the engine and session factory
            entity_class: SQLAlchemy model class this repository handles
            logger: Optional logger instance
        """
        self.db_manager = db_manager
        self.entity_class = entity_class
        self.logger = logger or get_logger()
        self.entity_name = entity_class.__name__

    def _handle_db_error(
        self,
        e: Exception,
        operation_name: str,
        entity_id: Optional[str] = None,
        **context: Any,
    ) -> NoReturn:
        """
        Map a failure raised inside a repository operation onto the error taxonomy.

        Args:
            e: The original exception
            operation_name: Name of the operation that failed
            entity_id: Optional entity ID involved in the operation
            **context: Additional context for the error

        Raises:
            RepositoryError: With appropriate error code and context
        """
        # Already classified (e.g. not found) - keep the original error code
        if isinstance(e, BaseError):
            raise e

        error_context = {
            "operation_name": operation_name,
            "entity_type": self.entity_name,
            **context,
        }
        if entity_id:
            error_context["entity_id"] = entity_id

        if isinstance(e, IntegrityError):
            error_message = str(e.orig).lower() if hasattr(e, "orig") else str(e).lower()
            error_code = (
                ErrorCode.DUPLICATE
                if "unique" in error_message or "duplicate" in error_message
                else ErrorCode.CONSTRAINT_VIOLATION
            )
            raise RepositoryError(
                f"Database constraint violation for {self.entity_name}: {str(e)}",
                error_code=error_code,
                status_code=409 if error_code == ErrorCode.DUPLICATE else 500,
                cause=e,
                **error_context,
            )

        if isinstance(e, _CONNECTION_ERRORS):
            raise StorageUnavailableError(
                f"Durable store unreachable during {operation_name}: {str(e)}",
                error_code=ErrorCode.CONNECTION_ERROR,
                cause=e,
                **error_context,
            )

        if isinstance(e, SQLAlchemyError):
            raise StorageUnavailableError(
                f"Database error for {self.entity_name}: {str(e)}",
                error_code=ErrorCode.DATABASE_ERROR,
                cause=e,
                **error_context,
            )

        raise RepositoryError(
            f"Unexpected error for {self.entity_name}: {str(e)}",
            error_code=ErrorCode.INTERNAL_ERROR,
            cause=e,
            **error_context,
        )

    @contextmanager
    def _session_operation(
        self, operation_name: str, entity_id: Optional[str] = None, is_read_only: bool = False
    ) -> Iterator[Session]:
        """
        Run one repository operation in its own session.

        The session is committed on success for write operations, rolled back on
        any failure, and always closed.

        Args:
            operation_name: Name of the operation for error reporting
            entity_id: Optional ID of the entity being operated on
            is_read_only: If True, skip the commit

        Yields:
            A fresh session

        Raises:
            RepositoryError: If there's a database error
        """
        try:
            session = self.db_manager.get_session()
        except Exception as e:
            self._handle_db_error(e, operation_name, entity_id)

        try:
            yield session
            if not is_read_only:
                session.commit()
        except Exception as e:
            session.rollback()
            self._handle_db_error(e, operation_name, entity_id)
        finally:
            session.close()

    @staticmethod
    def _apply_pagination(query, limit: int = 100, offset: int = 0):
        """
        Apply pagination to a query.

        Args:
            query: SQLAlchemy select object
            limit: Maximum number of results to return
            offset: Number of results to skip

        Returns:
            Query with pagination applied
        """
        return query.offset(offset).limit(limit)

    def _apply_ordering(self, query, sort_by: Optional[str] = None, sort_direction: str = "desc"):
        """
        Apply ordering to a query.

        Args:
            query: SQLAlchemy select object
            sort_by: Field to sort by
            sort_direction: Sort direction ('asc' or 'desc')

        Returns:
            Query with ordering applied
        """
        sort_field = getattr(self.entity_class, sort_by or "created_at")

        if sort_direction.lower() == "asc":
            return query.order_by(asc(sort_field))
        return query.order_by(desc(sort_field))

    def _apply_filters(self, query, **filters: Any):
        """
        Apply equality filters, skipping those whose value is None or empty.

        Args:
            query: SQLAlchemy select object
            **filters: Column name to value

        Returns:
            Query with filters applied
        """
        for field_name, value in filters.items():
            if value is None or value == "":
                continue
            query = query.where(getattr(self.entity_class, field_name) == value)
        return query
