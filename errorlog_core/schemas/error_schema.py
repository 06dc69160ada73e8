"""
Pydantic schemas for error events.

This module defines the validation schemas for the ingestion payload, the
stored event, and the aggregated read views.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, JsonValue, TypeAdapter, field_validator

from ..constants import DEFAULT_ENVIRONMENT
from ..enums import ErrorLevel
from .mixins import IdMixin, TimestampMixin, as_utc


class ErrorEventCreate(BaseModel):
    """
    Payload a client submits to report an error.

    Request metadata (user agent, IP address) and derived fields (id,
    fingerprint, resolved) are never taken from the payload; unknown keys
    are dropped.
    """

    message: str = Field(..., min_length=1, description="Error message")
    source: str = Field(..., min_length=1, max_length=50, description="Reporting component")
    level: ErrorLevel = Field(ErrorLevel.ERROR, description="Severity level")
    stack_trace: Optional[str] = Field(None, description="Stack trace if available")
    context: Dict[str, JsonValue] = Field(
        default_factory=dict, description="Arbitrary caller-supplied metadata"
    )
    environment: str = Field(DEFAULT_ENVIRONMENT, max_length=50, description="Deployment environment")
    url: Optional[str] = Field(None, description="URL where the error occurred")

    model_config = ConfigDict(extra="ignore")

    @field_validator("message", "source")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("level", mode="before")
    @classmethod
    def default_level(cls, value: Any) -> Any:
        if value is None or value == "":
            return ErrorLevel.ERROR
        if isinstance(value, str):
            return value.lower()
        return value

    @field_validator("environment", mode="before")
    @classmethod
    def default_environment(cls, value: Any) -> Any:
        if value is None or value == "":
            return DEFAULT_ENVIRONMENT
        return value

    @field_validator("context", mode="before")
    @classmethod
    def default_context(cls, value: Any) -> Any:
        return {} if value is None else value


class ErrorEvent(IdMixin, TimestampMixin):
    """A stored (or queued) error event."""

    timestamp: datetime
    level: ErrorLevel = ErrorLevel.ERROR
    message: str
    stack_trace: Optional[str] = None
    context: Dict[str, JsonValue] = Field(default_factory=dict)
    source: str
    environment: str = DEFAULT_ENVIRONMENT
    user_agent: Optional[str] = None
    ip_address: Optional[str] = None
    url: Optional[str] = None
    fingerprint: Optional[str] = None
    resolved: bool = False
    count: int = Field(1, ge=1)
    first_seen: datetime
    last_seen: datetime

    model_config = ConfigDict(from_attributes=True, extra="ignore")

    @field_validator("timestamp", "first_seen", "last_seen")
    @classmethod
    def ensure_event_times_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @field_validator("context", mode="before")
    @classmethod
    def default_context(cls, value: Any) -> Any:
        return {} if value is None else value


# Serializer for cached list pages
ERROR_EVENT_LIST = TypeAdapter(List[ErrorEvent])


class ErrorListResult(BaseModel):
    """One page of error events."""

    errors: List[ErrorEvent] = Field(default_factory=list)
    total: int = Field(..., ge=0, description="Matching events (approximate on cache hits)")
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)


class ErrorStats(BaseModel):
    """Aggregate statistics over all stored error events."""

    total_errors: int = 0
    resolved_errors: int = 0
    errors_today: int = 0
    errors_this_week: int = 0
    errors_this_month: int = 0
    error_rate_24h: float = Field(0.0, description="Errors per hour over the last 24 hours")
    resolution_rate: float = Field(0.0, description="Resolved errors as a percentage of total")
