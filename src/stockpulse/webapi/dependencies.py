"""Shared application state and FastAPI dependencies."""

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Optional

from fastapi import Header, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..config.logging import get_logger
from ..config.settings import get_settings
from ..core.ledger import HistoryLedger
from ..core.models import AppSettings
from ..core.watchlist import AnalysisSession
from ..exceptions import ConfigurationError, StockPulseException
from ..ormdb.database import create_tables
from ..ormdb.store import PreferencesStore
from ..services import AnalysisService, NotificationService

logger = get_logger(__name__)

DEFAULT_SESSION_ID = "default"


@dataclass
class AppState:
    """
    Everything the API shares between requests.

    The ledger and settings are loaded once at startup and written back on
    every change. Sessions are keyed by the ``X-Session-ID`` header and
    kept least-recently-used first; once more than ``max_sessions`` exist
    the oldest idle one is dropped.
    """

    ledger: HistoryLedger
    settings: AppSettings
    store: Optional[PreferencesStore] = None
    analysis_service: Optional[AnalysisService] = None
    notification_service: Optional[NotificationService] = None
    sessions: "OrderedDict[str, AnalysisSession]" = field(default_factory=OrderedDict)
    max_sessions: int = field(default_factory=lambda: get_settings().max_sessions)

    def __post_init__(self):
        if self.analysis_service is None:
            self.analysis_service = AnalysisService(self.ledger, self.store)
        if self.notification_service is None:
            self.notification_service = NotificationService(self.ledger, self.store)

    @classmethod
    def from_store(cls, store: Optional[PreferencesStore] = None) -> "AppState":
        """Create tables if needed and load history and settings."""
        create_tables()
        store = store or PreferencesStore()
        state = cls(
            ledger=store.load_history(),
            settings=store.load_settings(),
            store=store,
        )
        logger.info(
            "Application state loaded",
            history_items=len(state.ledger),
            recipient_configured=bool(state.settings.recipient_email),
        )
        return state

    def session(self, session_id: str) -> AnalysisSession:
        """Return the session for an id, creating it with the saved default criteria."""
        session = self.sessions.get(session_id)
        if session is not None:
            self.sessions.move_to_end(session_id)
            return session

        session = AnalysisSession(criteria=self.settings.default_criteria.model_copy())
        self.sessions[session_id] = session
        self._evict_idle_sessions(keep=session_id)
        return session

    def _evict_idle_sessions(self, keep: str) -> None:
        excess = len(self.sessions) - self.max_sessions
        if excess <= 0:
            return
        idle = [
            session_id
            for session_id, session in self.sessions.items()
            if session_id != keep and not self.analysis_service.is_running(session)
        ]
        for session_id in idle[:excess]:
            del self.sessions[session_id]
        logger.debug("Idle sessions evicted", count=min(excess, len(idle)))


def get_app_state(request: Request) -> AppState:
    """Dependency returning the state attached to the running app."""
    state = getattr(request.app.state, "stockpulse", None)
    if state is None:
        raise StockPulseException("Application state is not initialized")
    return state


def get_session(
    request: Request,
    x_session_id: Optional[str] = Header(None),
) -> AnalysisSession:
    """Dependency returning the caller's session."""
    return get_app_state(request).session(x_session_id or DEFAULT_SESSION_ID)


# Security scheme for Bearer token authentication
security = HTTPBearer(auto_error=False)


def verify_auth_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
) -> str:
    """
    Verify the authentication token.

    Args:
        credentials: The HTTP authorization credentials

    Returns:
        The token if valid

    Raises:
        ConfigurationError: If no token is configured
        StockPulseException: If the token is missing or invalid (401)
    """
    expected_token = get_settings().endpoint_auth_token
    if not expected_token:
        logger.error("Endpoint auth token not configured")
        raise ConfigurationError("ENDPOINT_AUTH_TOKEN", "not configured")

    if credentials is None:
        raise StockPulseException("Missing authentication token", status_code=401)

    if credentials.credentials != expected_token:
        logger.warning(
            "Invalid authentication attempt",
            provided_token_length=len(credentials.credentials),
        )
        raise StockPulseException("Invalid authentication token", status_code=401)

    logger.debug("Authentication successful")
    return credentials.credentials
