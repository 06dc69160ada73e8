"""
Database models for error events.

This module defines the SQLAlchemy model behind the durable store gateway.
"""

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String, Text

from ..constants import DEFAULT_ENVIRONMENT
from ..enums import ErrorLevel
from .db_base import JSON, TimestampMixin, UUIDMixin, utc_now
from .db_config import Base


class ErrorRecord(Base, UUIDMixin, TimestampMixin):
    """
    One reported error event.

    Every ingested event becomes its own row; ``count``, ``first_seen`` and
    ``last_seen`` are written once at creation and never merged.
    """

    __tablename__ = "errors"

    timestamp = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    level = Column(String(20), nullable=False, default=ErrorLevel.ERROR.value)
    message = Column(Text, nullable=False)
    stack_trace = Column(Text, nullable=True)
    context = Column(JSON, nullable=False, default=dict)
    source = Column(String(50), nullable=False)
    environment = Column(String(50), nullable=False, default=DEFAULT_ENVIRONMENT)
    user_agent = Column(Text, nullable=True)
    ip_address = Column(String(45), nullable=True)
    url = Column(Text, nullable=True)
    fingerprint = Column(String(64), nullable=True)
    resolved = Column(Boolean, nullable=False, default=False)
    count = Column(Integer, nullable=False, default=1)
    first_seen = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    last_seen = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    __table_args__ = (
        Index("ix_errors_timestamp", "timestamp"),
        Index("ix_errors_level", "level"),
        Index("ix_errors_source", "source"),
        Index("ix_errors_fingerprint", "fingerprint"),
        Index("ix_errors_resolved", "resolved"),
    )

    def __repr__(self) -> str:
        """String representation of the ErrorRecord."""
        return (
            f"<ErrorRecord(id='{self.id}', level='{self.level}', "
            f"source='{self.source}', fingerprint='{self.fingerprint}')>"
        )
