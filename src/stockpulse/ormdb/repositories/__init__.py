"""Repository classes for database operations using SQLAlchemy ORM."""

from .base import BaseRepository
from .key_value import KeyValueRepository

__all__ = [
    "BaseRepository",
    "KeyValueRepository",
]
