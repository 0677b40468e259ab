"""Request models for the StockPulse API."""

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from ...core.models import AnalysisCriteria


class AnalysisRequest(BaseModel):
    """Request model for running an analysis."""

    tickers: List[str] = Field(
        ..., description="Stock symbols to analyze (e.g., AAPL, MSFT)", min_length=1
    )
    criteria: Optional[AnalysisCriteria] = Field(
        None, description="Screening criteria; saved defaults are used when omitted"
    )

    @field_validator("tickers")
    @classmethod
    def validate_tickers(cls, v):
        """Trim and upper-case symbols, rejecting blanks."""
        cleaned = [t.strip().upper() for t in v]
        if not all(cleaned):
            raise ValueError("Ticker symbols must not be blank")
        for ticker in cleaned:
            if len(ticker) > 10:
                raise ValueError(f"Ticker symbol too long: {ticker}")
        return cleaned


class EmailAlertRequest(BaseModel):
    """Request model for emailing one stock's analysis."""

    ticker: str = Field(..., description="Stock symbol to send", min_length=1)
    recipient: Optional[str] = Field(
        None, description="Recipient email; the saved address is used when omitted"
    )
    history_id: Optional[str] = Field(
        None, description="History item holding the analysis to send"
    )

    @field_validator("ticker")
    @classmethod
    def validate_ticker(cls, v):
        return v.strip().upper()

    @field_validator("recipient")
    @classmethod
    def validate_recipient(cls, v):
        """Require something that looks like an email address."""
        if v is None:
            return v
        v = v.strip()
        if v and ("@" not in v or v.startswith("@") or v.endswith("@")):
            raise ValueError("Recipient must be a valid email address")
        return v
