"""SQLAlchemy ORM models for the StockPulse application."""

import datetime

from sqlalchemy import Column, DateTime, String, Text

from .database import Base


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


class KeyValueEntry(Base):
    """A serialized value stored under a string key."""

    __tablename__ = "key_value_entries"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    def __repr__(self):
        return f"<KeyValueEntry(key='{self.key}', size={len(self.value or '')})>"
