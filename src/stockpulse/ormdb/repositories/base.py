"""Shared session handling for repositories."""

from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...config.logging import get_logger
from ..database import get_session_sync

logger = get_logger(__name__)


class BaseRepository:
    """
    Wraps a session for one unit of work.

    A session passed in is left open for its owner; one created here is
    closed on exit. Any exception inside the ``with`` block rolls back.
    """

    def __init__(self, session: Optional[Session] = None):
        self.session = session or get_session_sync()
        self._owns_session = session is None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None:
            self.session.rollback()
        if self._owns_session:
            self.session.close()

    def commit(self) -> None:
        """Commit, rolling back and re-raising on failure."""
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            logger.error(
                "Commit failed",
                repository=type(self).__name__,
                error=str(e),
            )
            self.session.rollback()
            raise
