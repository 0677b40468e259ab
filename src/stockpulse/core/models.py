"""Canonical record types for analysis results and alert history."""

from datetime import date, datetime
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from .coercion import clamp_score, safe_number


class Recommendation(str, Enum):
    """Recommendation classes used for display and filtering."""

    BUY = "buy"
    HOLD = "hold"
    SELL = "sell"


class MACrossover(str, Enum):
    """Moving-average crossover patterns the analysis agent can look for."""

    ANY = "Any"
    GOLDEN_CROSS = "Golden Cross"
    DEATH_CROSS = "Death Cross"


class EmailFormat(str, Enum):
    """Layout of alert emails sent by the notification agent."""

    DETAILED = "detailed"
    SUMMARY = "summary"


def score_band(value) -> str:
    """Band a 0-100 score into high, medium or low."""
    score = safe_number(value)
    if score >= 67:
        return "high"
    if score >= 34:
        return "medium"
    return "low"


class StockAnalysis(BaseModel):
    """
    Normalized analysis of one stock, as emitted by the analysis agent.

    The recommendation class, 0-100 gauges and overall score band are derived
    on every dump so API clients can render them directly. They are ignored
    when records are read back.
    """

    model_config = ConfigDict(frozen=True)

    ticker: str = ""
    company_name: str = ""
    current_price: str = "N/A"
    technical_score: str = "0"
    technical_signal: str = "Neutral"
    fundamental_score: str = "0"
    fundamental_assessment: str = "N/A"
    overall_score: str = "0"
    recommendation: str = "Hold"
    confidence: str = "0"
    technical_highlights: Tuple[str, ...] = ()
    fundamental_highlights: Tuple[str, ...] = ()
    risk_factors: Tuple[str, ...] = ()
    conflicting_signals: str = ""

    @computed_field
    @property
    def recommendation_class(self) -> Recommendation:
        """Classify free-text recommendation by substring, defaulting to hold."""
        text = (self.recommendation or "").lower()
        if "buy" in text:
            return Recommendation.BUY
        if "sell" in text:
            return Recommendation.SELL
        return Recommendation.HOLD

    @computed_field
    @property
    def technical_gauge(self) -> float:
        return clamp_score(self.technical_score)

    @computed_field
    @property
    def fundamental_gauge(self) -> float:
        return clamp_score(self.fundamental_score)

    @computed_field
    @property
    def overall_gauge(self) -> float:
        return clamp_score(self.overall_score)

    @computed_field
    @property
    def confidence_gauge(self) -> float:
        return clamp_score(self.confidence)

    @computed_field
    @property
    def overall_band(self) -> str:
        return score_band(self.overall_score)


class AnalysisResult(BaseModel):
    """One analysis run's normalized output."""

    model_config = ConfigDict(frozen=True)

    stocks: Tuple[StockAnalysis, ...] = ()
    analysis_summary: str = ""
    market_context: str = ""
    timestamp: datetime

    def tickers(self) -> List[str]:
        return [stock.ticker for stock in self.stocks]

    def find_stock(self, ticker: str) -> Optional[StockAnalysis]:
        """Return the stock with the given ticker, if this result holds one."""
        for stock in self.stocks:
            if stock.ticker == ticker:
                return stock
        return None


class AlertHistoryItem(BaseModel):
    """
    A ledger entry wrapping one analysis result.

    Only ``email_sent`` and ``email_recipient`` change after creation, and
    only through ``HistoryLedger.mark_notified``.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(frozen=True)
    date: datetime = Field(frozen=True)
    analysis: AnalysisResult = Field(frozen=True)
    email_sent: bool = False
    email_recipient: Optional[str] = None

    def has_ticker(self, ticker: str) -> bool:
        return any(stock.ticker == ticker for stock in self.analysis.stocks)


class AnalysisCriteria(BaseModel):
    """Technical and fundamental screening criteria sent with a watch-list."""

    rsi_threshold: float = Field(30, ge=0, le=100, description="Flag RSI below this")
    ma_crossover: MACrossover = Field(
        MACrossover.ANY,
        validate_default=True,
        description="Moving-average crossover pattern",
    )
    volume_spike: float = Field(
        50, ge=0, description="Volume spike above average, in percent"
    )
    max_pe: float = Field(25, ge=0, description="Maximum price-to-earnings ratio")
    min_revenue_growth: float = Field(
        10, description="Minimum revenue growth, in percent"
    )
    max_debt_to_equity: float = Field(
        1.5, ge=0, description="Maximum debt-to-equity ratio"
    )

    model_config = ConfigDict(use_enum_values=True)


class AppSettings(BaseModel):
    """User settings persisted alongside the history."""

    recipient_email: str = ""
    email_format: EmailFormat = Field(EmailFormat.DETAILED, validate_default=True)
    default_criteria: AnalysisCriteria = Field(default_factory=AnalysisCriteria)

    model_config = ConfigDict(use_enum_values=True)

    @field_validator("recipient_email")
    @classmethod
    def strip_email(cls, v):
        return v.strip()


class HistoryFilter(BaseModel):
    """Criteria for narrowing the history view."""

    ticker: str = ""
    recommendation: str = "All"
    date_from: Optional[date] = None
    date_to: Optional[date] = None


class ExportRow(BaseModel):
    """One flattened (history item, stock) row of the CSV export."""

    date: str
    ticker: str
    company: str
    recommendation: str
    confidence: str
    overall_score: str
    email_sent: str

    def as_list(self) -> List[str]:
        return [
            self.date,
            self.ticker,
            self.company,
            self.recommendation,
            self.confidence,
            self.overall_score,
            self.email_sent,
        ]
