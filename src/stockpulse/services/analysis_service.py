"""Analysis service: one watch-list in, one history item out."""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..agents.handlers import call_agent
from ..agents.prompts import get_error_message, render_analysis_request
from ..config.logging import get_logger
from ..config.settings import get_settings
from ..core.ledger import HistoryLedger
from ..core.models import AlertHistoryItem, AnalysisResult
from ..core.normalizer import normalize_envelope
from ..core.watchlist import AnalysisSession, watchlist_key
from ..exceptions import AnalysisInProgressError
from ..ormdb.store import PreferencesStore

logger = get_logger(__name__)

Transport = Callable[[str, str], Awaitable[Dict[str, Any]]]


@dataclass
class AnalysisOutcome:
    """Result of one analysis run."""

    result: Optional[AnalysisResult]
    history_item: Optional[AlertHistoryItem]
    error: Optional[str]
    processing_time_ms: float

    @property
    def success(self) -> bool:
        return self.result is not None


class AnalysisService:
    """
    Runs analyses against the remote coordinator agent and records them.

    A session may have only one run outstanding, and so may a watch-list
    across sessions. Overlapping requests are rejected until the first
    run finishes.
    """

    def __init__(
        self,
        ledger: HistoryLedger,
        store: Optional[PreferencesStore] = None,
        transport: Optional[Transport] = None,
        agent_key: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
    ):
        settings = get_settings()
        self.ledger = ledger
        self.store = store
        self._transport = transport or call_agent
        self._agent_key = agent_key or settings.analysis_agent_key
        self._timeout = timeout_seconds or settings.agent_timeout_seconds
        # id(session) -> watch-list key of its outstanding run
        self._in_flight: Dict[int, str] = {}
        self.logger = logger.bind(service="analysis_service")

    def is_running(self, session: AnalysisSession) -> bool:
        """Whether this session has a run outstanding."""
        return id(session) in self._in_flight

    def check_available(
        self, session: AnalysisSession, tickers: Optional[List[str]] = None
    ) -> None:
        """
        Raise AnalysisInProgressError if a run for ``session`` would overlap.

        Callers about to replace the watch-list pass the new ``tickers`` and
        check before changing the session, so a rejected request leaves it
        untouched.
        """
        running = self._in_flight.get(id(session))
        if running is not None:
            self.logger.warning("Rejected run while session is busy", watchlist=running)
            raise AnalysisInProgressError(running)
        key = session.watchlist_key if tickers is None else watchlist_key(tickers)
        if key in self._in_flight.values():
            self.logger.warning("Rejected overlapping analysis run", watchlist=key)
            raise AnalysisInProgressError(key)

    async def run_analysis(self, session: AnalysisSession) -> AnalysisOutcome:
        """
        Analyze the session's watch-list and append the result to history.

        Args:
            session: Session holding the watch-list and criteria

        Returns:
            AnalysisOutcome with either a result and history item, or an error

        Raises:
            AnalysisInProgressError: If the session or its watch-list already
                has a run outstanding
        """
        start_time = datetime.now()
        self.check_available(session)

        if not session.tickers:
            return self._fail(session, get_error_message("empty_watchlist"), start_time)

        self._in_flight[id(session)] = session.watchlist_key
        session.last_result = None
        session.last_error = None

        try:
            return await self._run(session, start_time)
        finally:
            self._in_flight.pop(id(session), None)

    async def _run(
        self, session: AnalysisSession, start_time: datetime
    ) -> AnalysisOutcome:
        message = render_analysis_request(session.tickers, session.criteria)
        self.logger.info(
            "Analysis run started",
            tickers=session.tickers,
            criteria=session.criteria.model_dump(),
        )

        try:
            envelope = await asyncio.wait_for(
                self._transport(message, self._agent_key), timeout=self._timeout
            )
        except Exception as e:
            self.logger.error(
                "Analysis transport failed",
                tickers=session.tickers,
                error_type=type(e).__name__,
                error=str(e),
                exc_info=True,
            )
            return self._fail(
                session, str(e) or get_error_message("analysis_failed"), start_time
            )

        result = normalize_envelope(envelope)
        if result is None:
            return self._fail(
                session, get_error_message("unparseable_response"), start_time
            )

        item = self.ledger.append(result)
        self._persist()

        session.last_result = result
        elapsed = _elapsed_ms(start_time)
        self.logger.info(
            "Analysis run completed",
            history_id=item.id,
            stock_count=len(result.stocks),
            processing_time_ms=elapsed,
        )
        return AnalysisOutcome(
            result=result, history_item=item, error=None, processing_time_ms=elapsed
        )

    def _fail(
        self, session: AnalysisSession, error: str, start_time: datetime
    ) -> AnalysisOutcome:
        session.last_error = error
        self.logger.warning("Analysis run produced no result", error=error)
        return AnalysisOutcome(
            result=None,
            history_item=None,
            error=error,
            processing_time_ms=_elapsed_ms(start_time),
        )

    def _persist(self) -> None:
        if self.store is None:
            return
        try:
            self.store.save_history(self.ledger)
        except SQLAlchemyError as e:
            self.logger.error(
                "Failed to persist history", error=str(e), exc_info=True
            )


def _elapsed_ms(start_time: datetime) -> float:
    return (datetime.now() - start_time).total_seconds() * 1000
