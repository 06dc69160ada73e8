"""Domain enums for error events."""

from enum import Enum


class ErrorLevel(str, Enum):
    """Severity levels accepted for an error event."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    DEBUG = "debug"

    @classmethod
    def values(cls) -> list[str]:
        return [level.value for level in cls]
