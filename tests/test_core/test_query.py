"""Tests for history filtering and CSV export."""

import csv
import io
from datetime import date, datetime, timedelta

import pytest

from stockpulse.core.ledger import HistoryLedger
from stockpulse.core.models import AnalysisResult, HistoryFilter, StockAnalysis
from stockpulse.core.query import (
    EXPORT_HEADER,
    export_filename,
    export_rows,
    filter_history,
    local_date,
    rows_to_csv,
)

# Naive local times so calendar-day comparisons are timezone independent
DAY_ONE = datetime(2024, 3, 14, 10, 0)
DAY_TWO = datetime(2024, 3, 15, 23, 59)


@pytest.fixture
def history(result_factory):
    moments = iter([DAY_ONE, DAY_TWO])
    ledger = HistoryLedger(clock=lambda: next(moments))
    ledger.append(result_factory(("AAPL", "Buy")))
    ledger.append(result_factory(("MSFT", "Hold")))
    return ledger


class TestFilterHistory:
    """Test filter predicates."""

    def test_no_filter_keeps_everything_in_order(self, history):
        assert filter_history(history) == list(history.items)

    def test_ticker_case_insensitive_substring(self, history):
        items = filter_history(history, HistoryFilter(ticker="aapl"))
        assert [i.analysis.tickers() for i in items] == [["AAPL"]]

        items = filter_history(history, HistoryFilter(ticker="s"))
        assert [i.analysis.tickers() for i in items] == [["MSFT"]]

    def test_recommendation(self, history):
        assert filter_history(history, HistoryFilter(recommendation="Sell")) == []

        items = filter_history(history, HistoryFilter(recommendation="buy"))
        assert [i.analysis.tickers() for i in items] == [["AAPL"]]

    def test_recommendation_all(self, history):
        assert len(filter_history(history, HistoryFilter(recommendation="All"))) == 2

    def test_date_range_inclusive(self, history):
        same_day = HistoryFilter(date_from=date(2024, 3, 15), date_to=date(2024, 3, 15))
        items = filter_history(history, same_day)
        assert [i.analysis.tickers() for i in items] == [["MSFT"]]

    def test_date_range_excluding_all(self, history):
        criteria = HistoryFilter(date_from=date(2025, 1, 1))
        assert filter_history(history, criteria) == []

        criteria = HistoryFilter(date_to=date(2024, 3, 13))
        assert filter_history(history, criteria) == []

    def test_predicates_combine(self, history):
        criteria = HistoryFilter(ticker="AAPL", recommendation="Hold")
        assert filter_history(history, criteria) == []


class TestExport:
    """Test export rows and CSV rendering."""

    def test_one_row_per_stock(self, result_factory):
        ledger = HistoryLedger(clock=lambda: DAY_ONE)
        ledger.append(result_factory(("AAPL", "Buy"), ("MSFT", "Hold")))
        ledger.mark_notified("AAPL", "a@example.com")

        rows = export_rows(ledger)

        assert [row.ticker for row in rows] == ["AAPL", "MSFT"]
        assert {row.email_sent for row in rows} == {"Yes"}
        assert rows[0].date == "2024-03-14"
        assert rows[0].confidence == "0"

    def test_csv_header_and_rows(self, history):
        text = rows_to_csv(export_rows(history))
        lines = text.splitlines()

        assert lines[0] == ",".join(EXPORT_HEADER)
        assert lines[1] == "2024-03-15,MSFT,MSFT,Hold,0,0,No"
        assert len(lines) == 3

    def test_csv_quotes_special_characters(self):
        ledger = HistoryLedger(clock=lambda: DAY_ONE)
        ledger.append(
            AnalysisResult(
                stocks=[
                    StockAnalysis(
                        ticker="BRK.B",
                        company_name='Berkshire "B", Inc.\nClass B',
                    )
                ],
                timestamp=DAY_ONE,
            )
        )

        text = rows_to_csv(export_rows(ledger))
        parsed = list(csv.reader(io.StringIO(text)))

        assert parsed[1][2] == 'Berkshire "B", Inc.\nClass B'
        assert '"Berkshire ""B"", Inc.' in text

    def test_empty_export_is_header_only(self):
        assert rows_to_csv([]) == ",".join(EXPORT_HEADER) + "\n"


def test_export_filename():
    assert export_filename(date(2024, 3, 15)) == "stockpulse_history_2024-03-15.csv"


def test_local_date_naive_and_aware():
    assert local_date(DAY_TWO) == date(2024, 3, 15)
    aware = datetime.now().astimezone()
    assert local_date(aware) == aware.date()
    assert local_date(aware + timedelta(days=1)) == (aware + timedelta(days=1)).date()
