"""Repository for key-value entries."""

from typing import List, Optional

from ..models import KeyValueEntry
from .base import BaseRepository


class KeyValueRepository(BaseRepository):
    """Repository for key-value operations."""

    def get(self, key: str) -> Optional[str]:
        """Get the stored text for a key, or None."""
        entry = self.session.get(KeyValueEntry, key)
        return entry.value if entry is not None else None

    def set(self, key: str, value: str) -> KeyValueEntry:
        """Insert or replace the text stored under a key."""
        entry = self.session.get(KeyValueEntry, key)
        if entry is None:
            entry = KeyValueEntry(key=key, value=value)
            self.session.add(entry)
        else:
            entry.value = value

        self.commit()
        self.session.refresh(entry)
        return entry

    def delete(self, key: str) -> bool:
        """Remove a key. Returns False if it was not present."""
        entry = self.session.get(KeyValueEntry, key)
        if entry is None:
            return False

        self.session.delete(entry)
        self.commit()
        return True

    def keys(self) -> List[str]:
        return [
            key
            for (key,) in self.session.query(KeyValueEntry.key)
            .order_by(KeyValueEntry.key)
            .all()
        ]
