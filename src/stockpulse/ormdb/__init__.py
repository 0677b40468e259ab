"""Database module for SQLAlchemy ORM integration."""

from .database import (
    Base,
    check_database_health,
    create_tables,
    get_engine,
    get_session_factory,
    get_session_sync,
    reset_database,
)
from .models import KeyValueEntry
from .repositories import BaseRepository, KeyValueRepository
from .store import HISTORY_KEY, SETTINGS_KEY, PreferencesStore

__all__ = [
    # Database components
    "Base",
    "check_database_health",
    "create_tables",
    "get_engine",
    "get_session_factory",
    "get_session_sync",
    "reset_database",
    # Models
    "KeyValueEntry",
    # Repositories
    "BaseRepository",
    "KeyValueRepository",
    # Store
    "HISTORY_KEY",
    "SETTINGS_KEY",
    "PreferencesStore",
]
