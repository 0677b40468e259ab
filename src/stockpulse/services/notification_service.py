"""Notification service for emailing single-stock alerts."""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from ..agents.handlers import call_agent
from ..agents.prompts import get_error_message, render_email_alert
from ..config.logging import get_logger
from ..config.settings import get_settings
from ..core.envelope import lookup
from ..core.ledger import HistoryLedger
from ..core.models import EmailFormat, StockAnalysis
from ..core.watchlist import AnalysisSession, SendStatus, TickerSendState
from ..exceptions import NotFoundError
from ..ormdb.store import PreferencesStore
from .analysis_service import Transport

logger = get_logger(__name__)


@dataclass
class NotificationResult:
    """Result of one alert delivery attempt."""

    ticker: str
    recipient: str
    success: bool
    error: Optional[str]
    history_id: Optional[str]
    delivery_time_ms: float


class NotificationService:
    """
    Sends one stock's analysis to a recipient through the email alert agent.

    A successful send marks the owning history item as notified; a failed
    one only updates the session's per-ticker status.
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
        self._agent_key = agent_key or settings.notification_agent_key
        self._timeout = timeout_seconds or settings.agent_timeout_seconds
        self.logger = logger.bind(service="notification_service")

    def locate_stock(
        self,
        ticker: str,
        session: Optional[AnalysisSession] = None,
        history_id: Optional[str] = None,
    ) -> StockAnalysis:
        """
        Find the analysis to send for a ticker.

        Looks in the given history item, else the session's last result,
        else the most recent history item holding the ticker.

        Raises:
            NotFoundError: If no analysis for the ticker exists
        """
        ticker = ticker.strip().upper()

        if history_id is not None:
            item = self.ledger.get(history_id)
            if item is None:
                raise NotFoundError("History item", history_id)
            stock = item.analysis.find_stock(ticker)
            if stock is None:
                raise NotFoundError("Stock analysis", f"{history_id}/{ticker}")
            return stock

        if session is not None and session.last_result is not None:
            stock = session.last_result.find_stock(ticker)
            if stock is not None:
                return stock

        for item in self.ledger:
            stock = item.analysis.find_stock(ticker)
            if stock is not None:
                return stock

        raise NotFoundError("Stock analysis", ticker)

    async def send_stock_alert(
        self,
        stock: StockAnalysis,
        recipient: str,
        session: Optional[AnalysisSession] = None,
        email_format: str = EmailFormat.DETAILED.value,
        history_id: Optional[str] = None,
    ) -> NotificationResult:
        """
        Email one stock's analysis and mark it notified on success.

        Args:
            stock: Analysis to send
            recipient: Email address
            session: Session whose per-ticker status is updated
            email_format: 'detailed' or 'summary'
            history_id: Restrict the notified-marking to this history item

        Returns:
            NotificationResult describing the attempt
        """
        start_time = datetime.now()
        recipient = (recipient or "").strip()

        if not recipient:
            return self._finish(
                stock,
                recipient,
                session,
                get_error_message("missing_recipient"),
                start_time,
            )

        self._set_status(session, stock.ticker, SendStatus.SENDING, "Sending email...")
        message = render_email_alert(stock, recipient, email_format)

        try:
            envelope = await asyncio.wait_for(
                self._transport(message, self._agent_key), timeout=self._timeout
            )
        except Exception as e:
            self.logger.error(
                "Notification transport failed",
                ticker=stock.ticker,
                recipient=recipient,
                error_type=type(e).__name__,
                error=str(e),
                exc_info=True,
            )
            return self._finish(
                stock,
                recipient,
                session,
                str(e) or get_error_message("email_failed"),
                start_time,
            )

        if not lookup(envelope, "success"):
            error = lookup(envelope, "error") or get_error_message("email_failed")
            self.logger.warning(
                "Notification agent reported failure",
                ticker=stock.ticker,
                recipient=recipient,
                error=error,
            )
            return self._finish(stock, recipient, session, str(error), start_time)

        item = self.ledger.mark_notified(stock.ticker, recipient, item_id=history_id)
        if item is not None:
            self._persist()

        return self._finish(
            stock,
            recipient,
            session,
            None,
            start_time,
            history_id=item.id if item is not None else None,
        )

    def _finish(
        self,
        stock: StockAnalysis,
        recipient: str,
        session: Optional[AnalysisSession],
        error: Optional[str],
        start_time: datetime,
        history_id: Optional[str] = None,
    ) -> NotificationResult:
        delivery_time = (datetime.now() - start_time).total_seconds() * 1000

        if error is None:
            self._set_status(
                session, stock.ticker, SendStatus.SUCCESS, f"Alert sent to {recipient}"
            )
            self.logger.info(
                "Stock alert sent",
                ticker=stock.ticker,
                recipient=recipient,
                history_id=history_id,
                delivery_time_ms=delivery_time,
            )
        else:
            self._set_status(session, stock.ticker, SendStatus.ERROR, error)

        return NotificationResult(
            ticker=stock.ticker,
            recipient=recipient,
            success=error is None,
            error=error,
            history_id=history_id,
            delivery_time_ms=delivery_time,
        )

    @staticmethod
    def _set_status(
        session: Optional[AnalysisSession],
        ticker: str,
        status: SendStatus,
        message: str,
    ) -> None:
        if session is not None:
            session.email_status[ticker] = TickerSendState(status=status, message=message)

    def _persist(self) -> None:
        if self.store is None:
            return
        try:
            self.store.save_history(self.ledger)
        except SQLAlchemyError as e:
            self.logger.error(
                "Failed to persist history", error=str(e), exc_info=True
            )
