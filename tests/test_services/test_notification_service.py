"""Tests for the notification service."""

from unittest.mock import AsyncMock, Mock

import pytest

from stockpulse.core.watchlist import AnalysisSession, SendStatus
from stockpulse.exceptions import NotFoundError
from stockpulse.services import NotificationService

SENT = {"success": True, "response": {"status": "success"}, "error": None}


@pytest.fixture
def filled_ledger(ledger, result_factory):
    ledger.append(result_factory(("AAPL", "Buy"), ("MSFT", "Hold")))
    return ledger


class TestLocateStock:
    """Test finding the analysis to send."""

    def test_from_ledger(self, filled_ledger):
        service = NotificationService(filled_ledger)
        assert service.locate_stock("msft").ticker == "MSFT"

    def test_session_result_first(self, filled_ledger, result_factory):
        service = NotificationService(filled_ledger)
        session = AnalysisSession(last_result=result_factory(("AAPL", "Sell")))

        assert service.locate_stock("AAPL", session).recommendation == "Sell"

    def test_by_history_id(self, filled_ledger):
        service = NotificationService(filled_ledger)
        item = filled_ledger.items[0]

        assert service.locate_stock("AAPL", history_id=item.id).ticker == "AAPL"

        with pytest.raises(NotFoundError):
            service.locate_stock("TSLA", history_id=item.id)
        with pytest.raises(NotFoundError):
            service.locate_stock("AAPL", history_id="missing")

    def test_unknown_ticker(self, filled_ledger):
        with pytest.raises(NotFoundError) as exc_info:
            NotificationService(filled_ledger).locate_stock("TSLA")
        assert exc_info.value.status_code == 404


class TestSendStockAlert:
    """Test sending one alert."""

    @pytest.mark.asyncio
    async def test_success_marks_notified(self, filled_ledger):
        transport = AsyncMock(return_value=SENT)
        store = Mock()
        service = NotificationService(filled_ledger, store=store, transport=transport)
        session = AnalysisSession()
        stock = service.locate_stock("AAPL")

        result = await service.send_stock_alert(stock, " a@example.com ", session)

        assert result.success
        assert result.recipient == "a@example.com"
        item = filled_ledger.items[0]
        assert result.history_id == item.id
        assert item.email_sent is True
        assert item.email_recipient == "a@example.com"
        assert session.email_status["AAPL"].status == SendStatus.SUCCESS
        store.save_history.assert_called_once_with(filled_ledger)

        message, agent_key = transport.call_args[0]
        assert "Stock: AAPL (AAPL)" in message
        assert agent_key == "email_alert"

    @pytest.mark.asyncio
    async def test_summary_format(self, filled_ledger):
        transport = AsyncMock(return_value=SENT)
        service = NotificationService(filled_ledger, transport=transport)

        await service.send_stock_alert(
            service.locate_stock("AAPL"), "a@example.com", email_format="summary"
        )

        assert "Technical Highlights" not in transport.call_args[0][0]

    @pytest.mark.asyncio
    async def test_missing_recipient(self, filled_ledger):
        transport = AsyncMock()
        service = NotificationService(filled_ledger, transport=transport)
        session = AnalysisSession()

        result = await service.send_stock_alert(
            service.locate_stock("AAPL"), "   ", session
        )

        assert not result.success
        assert result.error == "Please enter a recipient email address."
        assert session.email_status["AAPL"].status == SendStatus.ERROR
        transport.assert_not_called()

    @pytest.mark.asyncio
    async def test_agent_reports_failure(self, filled_ledger):
        transport = AsyncMock(
            return_value={"success": False, "error": "Mailbox unavailable"}
        )
        store = Mock()
        service = NotificationService(filled_ledger, store=store, transport=transport)
        session = AnalysisSession()

        result = await service.send_stock_alert(
            service.locate_stock("AAPL"), "a@example.com", session
        )

        assert result.error == "Mailbox unavailable"
        assert session.email_status["AAPL"].message == "Mailbox unavailable"
        assert filled_ledger.items[0].email_sent is False
        store.save_history.assert_not_called()

    @pytest.mark.asyncio
    async def test_failure_without_error_text(self, filled_ledger):
        service = NotificationService(
            filled_ledger, transport=AsyncMock(return_value={"success": False})
        )

        result = await service.send_stock_alert(
            service.locate_stock("AAPL"), "a@example.com"
        )

        assert result.error == "Failed to send email"

    @pytest.mark.asyncio
    async def test_transport_exception(self, filled_ledger):
        service = NotificationService(
            filled_ledger, transport=AsyncMock(side_effect=ConnectionError("offline"))
        )

        result = await service.send_stock_alert(
            service.locate_stock("MSFT"), "a@example.com"
        )

        assert result.error == "offline"
        assert filled_ledger.items[0].email_sent is False

    @pytest.mark.asyncio
    async def test_second_send_does_not_remark(self, filled_ledger):
        service = NotificationService(
            filled_ledger, transport=AsyncMock(return_value=SENT)
        )
        stock = service.locate_stock("AAPL")

        first = await service.send_stock_alert(stock, "a@example.com")
        second = await service.send_stock_alert(stock, "b@example.com")

        assert first.history_id is not None
        assert second.success
        assert second.history_id is None
        assert filled_ledger.items[0].email_recipient == "a@example.com"

    @pytest.mark.asyncio
    async def test_restricted_to_history_id(self, ledger, result_factory):
        older = ledger.append(result_factory(("AAPL", "Buy")))
        newer = ledger.append(result_factory(("AAPL", "Hold")))
        service = NotificationService(ledger, transport=AsyncMock(return_value=SENT))
        stock = service.locate_stock("AAPL", history_id=older.id)

        result = await service.send_stock_alert(
            stock, "a@example.com", history_id=older.id
        )

        assert result.history_id == older.id
        assert older.email_sent is True
        assert newer.email_sent is False
