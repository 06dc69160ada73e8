"""Pydantic schemas for error events and read views."""

from .error_schema import ErrorEvent, ErrorEventCreate, ErrorListResult, ErrorStats

__all__ = [
    "ErrorEvent",
    "ErrorEventCreate",
    "ErrorListResult",
    "ErrorStats",
]
