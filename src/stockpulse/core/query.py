"""History filtering and CSV export."""

import csv
import io
from datetime import date, datetime
from typing import Iterable, List, Optional

from .models import AlertHistoryItem, ExportRow, HistoryFilter

EXPORT_HEADER = [
    "Date",
    "Ticker",
    "Company",
    "Recommendation",
    "Confidence",
    "Overall Score",
    "Email Sent",
]


def local_date(moment: datetime) -> date:
    """Calendar date of an instant in the local timezone."""
    if moment.tzinfo is None:
        return moment.date()
    return moment.astimezone().date()


def _matches_ticker(item: AlertHistoryItem, text: str) -> bool:
    if not text:
        return True
    needle = text.lower()
    return any(needle in stock.ticker.lower() for stock in item.analysis.stocks)


def _matches_recommendation(item: AlertHistoryItem, text: str) -> bool:
    if not text or text == "All":
        return True
    needle = text.lower()
    return any(
        needle in (stock.recommendation or "").lower()
        for stock in item.analysis.stocks
    )


def _within_dates(
    item: AlertHistoryItem, date_from: Optional[date], date_to: Optional[date]
) -> bool:
    day = local_date(item.date)
    if date_from and day < date_from:
        return False
    if date_to and day > date_to:
        return False
    return True


def matches(item: AlertHistoryItem, criteria: HistoryFilter) -> bool:
    """Whether a history item passes every predicate of the filter."""
    return (
        _matches_ticker(item, criteria.ticker)
        and _matches_recommendation(item, criteria.recommendation)
        and _within_dates(item, criteria.date_from, criteria.date_to)
    )


def filter_history(
    items: Iterable[AlertHistoryItem], criteria: Optional[HistoryFilter] = None
) -> List[AlertHistoryItem]:
    """
    Select the history items matching ``criteria``, preserving ledger order.

    Ticker and recommendation match case-insensitively by substring against
    any stock in the item. Dates compare at day granularity, inclusive at
    both ends.
    """
    criteria = criteria or HistoryFilter()
    return [item for item in items if matches(item, criteria)]


def export_rows(items: Iterable[AlertHistoryItem]) -> List[ExportRow]:
    """Flatten history into one row per (item, stock) pair."""
    rows = []
    for item in items:
        day = local_date(item.date).isoformat()
        for stock in item.analysis.stocks:
            rows.append(
                ExportRow(
                    date=day,
                    ticker=stock.ticker,
                    company=stock.company_name,
                    recommendation=stock.recommendation,
                    confidence=stock.confidence,
                    overall_score=stock.overall_score,
                    email_sent="Yes" if item.email_sent else "No",
                )
            )
    return rows


def rows_to_csv(rows: Iterable[ExportRow]) -> str:
    """Render export rows as CSV text with a header row."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(EXPORT_HEADER)
    for row in rows:
        writer.writerow(row.as_list())
    return buffer.getvalue()


def export_filename(today: Optional[date] = None) -> str:
    return f"stockpulse_history_{(today or date.today()).isoformat()}.csv"
