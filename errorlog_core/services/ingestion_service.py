"""
Ingestion service.

Accepts reported errors, stamps them with an id, timestamps and a grouping
fingerprint, and hands them to the work queue. When the queue is unreachable
the event is written to the durable store directly so it is not lost.
"""

import uuid
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from ..context.operation_context import operation
from ..db.db_base import utc_now
from ..exceptions import (
    BaseError,
    CacheError,
    ErrorCode,
    StorageUnavailableError,
    ValidationError,
)
from ..schemas.error_schema import ErrorEvent, ErrorEventCreate
from ..utils.hash_utils import generate_fingerprint
from .base_service import BaseService


class IngestionService(BaseService):
    """Service for accepting error reports."""

    @operation(name="error_submit")
    def submit(
        self,
        request: Union[ErrorEventCreate, Mapping[str, Any]],
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> ErrorEvent:
        """
        Accept one error report.

        The event is returned as soon as it is queued; it becomes visible to
        store-backed reads once the queue worker has persisted it.

        Args:
            request: Validated payload or a raw mapping
            user_agent: Reporting client's user agent
            ip_address: Reporting client's address

        Returns:
            The accepted event

        Raises:
            ValidationError: If the payload is invalid (nothing is queued or stored)
            StorageUnavailableError: If the event could be neither queued nor stored
        """
        payload = self._parse_request(request)
        event = self._build_event(payload, user_agent, ip_address)

        try:
            try:
                self.cache.enqueue(event)
            except CacheError as e:
                self.logger.warning(
                    "Enqueue failed, storing error event synchronously",
                    extra={"error_event_id": event.id, "error_details": e.message},
                )
                self._store_directly(event)

            self._invalidate_caches("submit", event.id)

            self.logger.info(
                "Error event accepted",
                extra={
                    "error_event_id": event.id,
                    "level": event.level.value,
                    "source": event.source,
                    "fingerprint": event.fingerprint,
                },
            )
            return event
        except Exception as e:
            self._handle_service_exception("submit", e, event.id)

    def _store_directly(self, event: ErrorEvent) -> None:
        try:
            self.repository.create_error(event)
        except BaseError as e:
            raise StorageUnavailableError(
                "Error event could not be queued or stored",
                error_code=ErrorCode.CONNECTION_ERROR,
                cause=e,
                error_event_id=event.id,
            )

    @staticmethod
    def _parse_request(request: Union[ErrorEventCreate, Mapping[str, Any]]) -> ErrorEventCreate:
        if isinstance(request, ErrorEventCreate):
            return request

        if not isinstance(request, Mapping):
            raise ValidationError(
                "Error report must be an object",
                error_code=ErrorCode.TYPE_MISMATCH,
                received_type=type(request).__name__,
            )

        try:
            return ErrorEventCreate.model_validate(dict(request))
        except PydanticValidationError as e:
            problems = [
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in e.errors()
            ]
            first_field = ".".join(str(part) for part in e.errors()[0]["loc"]) if problems else None
            raise ValidationError(
                f"Invalid error report: {'; '.join(problems)}",
                field=first_field,
                cause=e,
            )

    @staticmethod
    def _build_event(
        payload: ErrorEventCreate, user_agent: Optional[str], ip_address: Optional[str]
    ) -> ErrorEvent:
        now = utc_now()
        return ErrorEvent(
            id=str(uuid.uuid4()),
            timestamp=now,
            level=payload.level,
            message=payload.message,
            stack_trace=payload.stack_trace,
            context=payload.context,
            source=payload.source,
            environment=payload.environment,
            user_agent=user_agent,
            ip_address=ip_address,
            url=payload.url,
            fingerprint=generate_fingerprint(payload.message, payload.stack_trace),
            resolved=False,
            count=1,
            first_seen=now,
            last_seen=now,
            created_at=now,
            updated_at=now,
        )
