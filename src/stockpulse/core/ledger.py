"""Append-only history of analysis results."""

from typing import Any, Iterable, Iterator, List, Optional, Tuple

from pydantic import ValidationError

from ..config.logging import LoggerMixin, get_logger
from .models import AlertHistoryItem, AnalysisResult
from .normalizer import Clock, utc_now

logger = get_logger(__name__)


class HistoryLedger(LoggerMixin):
    """
    Most-recent-first collection of AlertHistoryItems.

    Items are only ever prepended. The single permitted mutation is
    ``mark_notified``, which flips ``email_sent`` on one item.
    """

    def __init__(
        self,
        items: Optional[Iterable[AlertHistoryItem]] = None,
        clock: Optional[Clock] = None,
    ):
        self._items: List[AlertHistoryItem] = list(items or [])
        self._clock = clock or utc_now
        self._last_id = max(
            (int(item.id) for item in self._items if item.id.isdigit()), default=0
        )

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[AlertHistoryItem]:
        return iter(tuple(self._items))

    @property
    def items(self) -> Tuple[AlertHistoryItem, ...]:
        """Snapshot of the ledger in canonical (most-recent-first) order."""
        return tuple(self._items)

    def get(self, item_id: str) -> Optional[AlertHistoryItem]:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def _next_id(self, created_at) -> str:
        # Millisecond timestamp, bumped so ids stay unique and increasing.
        candidate = int(created_at.timestamp() * 1000)
        if candidate <= self._last_id:
            candidate = self._last_id + 1
        self._last_id = candidate
        return str(candidate)

    def append(self, result: AnalysisResult) -> AlertHistoryItem:
        """
        Record a new analysis result at the front of the ledger.

        Args:
            result: A normalized analysis result

        Returns:
            The newly created history item
        """
        created_at = self._clock()
        item = AlertHistoryItem(
            id=self._next_id(created_at),
            date=created_at,
            analysis=result,
            email_sent=False,
        )
        self._items.insert(0, item)

        self.logger.info(
            "History item appended",
            item_id=item.id,
            tickers=result.tickers(),
            ledger_size=len(self._items),
        )
        return item

    def mark_notified(
        self, ticker: str, recipient: str, item_id: Optional[str] = None
    ) -> Optional[AlertHistoryItem]:
        """
        Mark the most recent unnotified item holding ``ticker`` as emailed.

        When ``item_id`` is given, only that item is considered. No match
        is not an error.

        Args:
            ticker: Ticker the alert was sent for
            recipient: Address the alert was sent to
            item_id: Optional history item to restrict the match to

        Returns:
            The updated item, or None if nothing matched
        """
        for item in self._items:
            if item_id is not None and item.id != item_id:
                continue
            if item.email_sent or not item.has_ticker(ticker):
                continue

            item.email_sent = True
            item.email_recipient = recipient
            self.logger.info(
                "History item marked notified",
                item_id=item.id,
                ticker=ticker,
                recipient=recipient,
            )
            return item

        self.logger.debug(
            "No unnotified history item for ticker", ticker=ticker, item_id=item_id
        )
        return None

    def to_records(self) -> List[dict]:
        """Serialize the ledger into JSON-compatible records."""
        return [item.model_dump(mode="json") for item in self._items]

    @classmethod
    def from_records(
        cls, records: Any, clock: Optional[Clock] = None
    ) -> "HistoryLedger":
        """
        Rebuild a ledger from stored records, dropping malformed entries.

        Args:
            records: Previously stored output of ``to_records``
            clock: Clock for future appends

        Returns:
            A ledger holding every record that validated
        """
        if not isinstance(records, list):
            return cls(clock=clock)

        items = []
        for record in records:
            try:
                items.append(AlertHistoryItem.model_validate(record))
            except ValidationError as e:
                logger.warning(
                    "Dropping malformed history record",
                    record_id=record.get("id") if isinstance(record, dict) else None,
                    error_count=e.error_count(),
                )
        return cls(items, clock=clock)
