"""Utility modules for the error log core."""

from .hash_utils import generate_fingerprint
from .logger import (
    ContextAwareLogger,
    CorrelationIdFilter,
    configure_logging,
    get_logger,
)

__all__ = [
    "generate_fingerprint",
    "ContextAwareLogger",
    "CorrelationIdFilter",
    "configure_logging",
    "get_logger",
]
