"""Persistence of the history ledger and user settings."""

import json
from typing import Callable, Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config.logging import get_logger
from ..core.ledger import HistoryLedger
from ..core.models import AnalysisCriteria, AppSettings
from .database import get_session_sync
from .repositories import KeyValueRepository

logger = get_logger(__name__)

HISTORY_KEY = "stockpulse_history"
SETTINGS_KEY = "stockpulse_settings"


class PreferencesStore:
    """
    Read-at-startup, write-on-change store for history and settings.

    Loading never fails: unreadable or undecodable values come back as an
    empty ledger or default settings.
    """

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        self._session_factory = session_factory or get_session_sync
        self.logger = logger.bind(component="preferences_store")

    def _read(self, key: str) -> Optional[str]:
        session = self._session_factory()
        try:
            with KeyValueRepository(session) as repo:
                return repo.get(key)
        except SQLAlchemyError as e:
            self.logger.error(
                "Failed to read stored value", key=key, error=str(e), exc_info=True
            )
            return None
        finally:
            session.close()

    def _write(self, key: str, value: str) -> None:
        session = self._session_factory()
        try:
            with KeyValueRepository(session) as repo:
                repo.set(key, value)
        finally:
            session.close()

    def load_history(self) -> HistoryLedger:
        """Load the stored ledger, or an empty one."""
        raw = self._read(HISTORY_KEY)
        if not raw:
            return HistoryLedger()

        try:
            records = json.loads(raw)
        except ValueError as e:
            self.logger.warning("Stored history is not valid JSON", error=str(e))
            return HistoryLedger()

        ledger = HistoryLedger.from_records(records)
        self.logger.info("History loaded", item_count=len(ledger))
        return ledger

    def save_history(self, ledger: HistoryLedger) -> None:
        self._write(HISTORY_KEY, json.dumps(ledger.to_records()))
        self.logger.debug("History saved", item_count=len(ledger))

    def load_settings(self) -> AppSettings:
        """
        Load stored settings, filling any missing or invalid fields with defaults.
        """
        raw = self._read(SETTINGS_KEY)
        if not raw:
            return AppSettings()

        try:
            stored = json.loads(raw)
        except ValueError as e:
            self.logger.warning("Stored settings are not valid JSON", error=str(e))
            return AppSettings()

        if not isinstance(stored, dict):
            return AppSettings()

        try:
            return AppSettings.model_validate(stored)
        except ValidationError as e:
            self.logger.warning(
                "Stored settings invalid, recovering field by field",
                error_count=e.error_count(),
            )
            return _recover_settings(stored)

    def save_settings(self, settings: AppSettings) -> None:
        self._write(SETTINGS_KEY, settings.model_dump_json())
        self.logger.info("Settings saved")


def _recover_settings(stored: dict) -> AppSettings:
    """Keep each valid top-level and criteria field, defaulting the rest."""
    defaults = AppSettings()
    recovered = {}

    for name in ("recipient_email", "email_format"):
        try:
            AppSettings.model_validate({name: stored.get(name)})
            recovered[name] = stored[name]
        except ValidationError:
            recovered[name] = getattr(defaults, name)

    criteria = stored.get("default_criteria")
    criteria_fields = {}
    if isinstance(criteria, dict):
        for name in AnalysisCriteria.model_fields:
            if name not in criteria:
                continue
            try:
                AnalysisCriteria.model_validate({name: criteria[name]})
                criteria_fields[name] = criteria[name]
            except ValidationError:
                continue
    recovered["default_criteria"] = AnalysisCriteria(**criteria_fields)

    return AppSettings.model_validate(recovered)
