"""Normalization of unwrapped agent payloads into canonical analysis records."""

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from ..config.logging import get_logger
from .coercion import safe_array
from .envelope import is_present, lookup, parse_agent_response
from .models import AnalysisResult, StockAnalysis

logger = get_logger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _text(value: Any, default: str) -> str:
    """Falsy values take the default; other scalars are stringified."""
    if not value:
        return default
    if isinstance(value, str):
        return value
    return str(value)


def has_stocks(payload: Any) -> bool:
    """Whether ``payload`` is a structured value carrying a ``stocks`` field."""
    if payload is None or isinstance(payload, (str, bytes, list, tuple)):
        return False
    return is_present(lookup(payload, "stocks"))


def normalize_stock(raw: Any) -> StockAnalysis:
    """Build a StockAnalysis from one raw ``stocks`` element, filling defaults."""
    ticker = _text(lookup(raw, "ticker"), "").strip().upper()

    return StockAnalysis(
        ticker=ticker,
        company_name=_text(lookup(raw, "company_name"), ticker),
        current_price=_text(lookup(raw, "current_price"), "N/A"),
        technical_score=_text(lookup(raw, "technical_score"), "0"),
        technical_signal=_text(lookup(raw, "technical_signal"), "Neutral"),
        fundamental_score=_text(lookup(raw, "fundamental_score"), "0"),
        fundamental_assessment=_text(lookup(raw, "fundamental_assessment"), "N/A"),
        overall_score=_text(lookup(raw, "overall_score"), "0"),
        recommendation=_text(lookup(raw, "recommendation"), "Hold"),
        confidence=_text(lookup(raw, "confidence"), "0"),
        technical_highlights=safe_array(lookup(raw, "technical_highlights")),
        fundamental_highlights=safe_array(lookup(raw, "fundamental_highlights")),
        risk_factors=safe_array(lookup(raw, "risk_factors")),
        conflicting_signals=_text(lookup(raw, "conflicting_signals"), ""),
    )


def normalize_analysis(
    payload: Any, now: Optional[Clock] = None
) -> Optional[AnalysisResult]:
    """
    Turn an unwrapped payload into an AnalysisResult.

    Args:
        payload: Output of ``parse_agent_response``
        now: Clock used to stamp the result (defaults to current UTC time)

    Returns:
        The normalized result, or None when the payload has no ``stocks``
    """
    if not has_stocks(payload):
        logger.warning(
            "Agent payload has no stocks field",
            payload_type=type(payload).__name__,
        )
        return None

    raw_stocks = lookup(payload, "stocks")
    if isinstance(raw_stocks, (list, tuple)):
        stocks = [
            normalize_stock(raw)
            for raw in raw_stocks
            if isinstance(raw, Mapping)
        ]
    else:
        stocks = []

    result = AnalysisResult(
        stocks=stocks,
        analysis_summary=_text(lookup(payload, "analysis_summary"), ""),
        market_context=_text(lookup(payload, "market_context"), ""),
        timestamp=(now or utc_now)(),
    )

    logger.info(
        "Analysis payload normalized",
        stock_count=len(result.stocks),
        tickers=result.tickers(),
    )
    return result


def normalize_envelope(
    envelope: Any, now: Optional[Clock] = None
) -> Optional[AnalysisResult]:
    """Unwrap and normalize a raw agent response in one step."""
    return normalize_analysis(parse_agent_response(envelope), now=now)
