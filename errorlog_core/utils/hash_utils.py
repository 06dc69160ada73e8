"""
Hash utilities for grouping similar error events.

The fingerprint is a short, deterministic digest of an error's message and
stack trace. Two events with the same message and stack always share a
fingerprint; it is stored with every event as a lookup key for grouping.
"""

import hashlib
from typing import Optional

from ..constants import FINGERPRINT_LENGTH


def generate_fingerprint(message: str, stack_trace: Optional[str] = None) -> str:
    """
    Compute the grouping fingerprint for an error event.

    Args:
        message: Error message
        stack_trace: Optional stack trace; treated as an empty string when absent

    Returns:
        First 16 hex characters of the SHA-256 digest of message + stack trace
    """
    data = message + (stack_trace or "")
    return hashlib.sha256(data.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]
