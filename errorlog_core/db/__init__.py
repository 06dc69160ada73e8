"""
SQLAlchemy models and connection management for the durable store.
"""

from .db_base import JSON, TimestampMixin, UUIDMixin, utc_now
from .db_config import Base, DatabaseManager, import_all_models, init_db
from .db_error_models import ErrorRecord

__all__ = [
    # Base definitions
    "Base",
    "JSON",
    "TimestampMixin",
    "UUIDMixin",
    "utc_now",
    # Configuration
    "DatabaseManager",
    "import_all_models",
    "init_db",
    # Models
    "ErrorRecord",
]
