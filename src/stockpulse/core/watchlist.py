"""Per-session watch-list and notification state."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from .models import AnalysisCriteria, AnalysisResult


class SendStatus(Enum):
    """Progress of an alert email for one ticker."""

    SENDING = "sending"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class TickerSendState:
    """Latest email outcome shown next to a ticker."""

    status: SendStatus
    message: str


def normalize_ticker(raw: str) -> str:
    return (raw or "").strip().upper()


def watchlist_key(tickers: List[str]) -> str:
    """Order-independent identity of a watch-list, used to detect overlapping runs."""
    return ",".join(sorted({normalize_ticker(t) for t in tickers} - {""}))


@dataclass
class AnalysisSession:
    """
    State owned by one user session.

    Holds the watch-list, the criteria for the next run, the last
    successful result and the per-ticker email status.
    """

    tickers: List[str] = field(default_factory=list)
    criteria: AnalysisCriteria = field(default_factory=AnalysisCriteria)
    last_result: Optional[AnalysisResult] = None
    last_error: Optional[str] = None
    email_status: Dict[str, TickerSendState] = field(default_factory=dict)

    def add_ticker(self, raw: str) -> bool:
        """Add a trimmed, upper-cased ticker. Returns False for blanks and duplicates."""
        ticker = normalize_ticker(raw)
        if not ticker or ticker in self.tickers:
            return False
        self.tickers.append(ticker)
        return True

    def remove_ticker(self, raw: str) -> bool:
        ticker = normalize_ticker(raw)
        if ticker not in self.tickers:
            return False
        self.tickers.remove(ticker)
        return True

    def set_tickers(self, raw_tickers: List[str]) -> None:
        self.tickers = []
        for raw in raw_tickers:
            self.add_ticker(raw)

    @property
    def watchlist_key(self) -> str:
        return watchlist_key(self.tickers)
