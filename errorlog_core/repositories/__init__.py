from .base_repository import BaseRepository
from .error_repository import ErrorRepository

__all__ = ["BaseRepository", "ErrorRepository"]
