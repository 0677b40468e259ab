"""Shared test configuration and fixtures."""

import os
import tempfile
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, Mock, patch

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from stockpulse.core.ledger import HistoryLedger
from stockpulse.core.models import AnalysisResult, StockAnalysis


@pytest.fixture
def isolated_db():
    """Create an isolated database for testing."""
    temp_fd, temp_path = tempfile.mkstemp(suffix=".db")
    db_url = f"sqlite:///{temp_path}"
    engine = create_engine(db_url, connect_args={"check_same_thread": False})

    try:
        SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

        from stockpulse.ormdb.models import Base

        Base.metadata.create_all(bind=engine)

        yield {
            "engine": engine,
            "session_factory": SessionLocal,
            "db_url": db_url,
            "db_path": temp_path,
        }

    finally:
        engine.dispose()
        os.close(temp_fd)
        os.unlink(temp_path)


@pytest.fixture
def store(isolated_db):
    """PreferencesStore backed by the isolated database."""
    from stockpulse.ormdb.store import PreferencesStore

    return PreferencesStore(session_factory=isolated_db["session_factory"])


@pytest.fixture(autouse=True)
def test_env(tmp_path):
    """Point settings at a throwaway database and keep logs off disk."""
    from stockpulse.config.settings import get_settings
    from stockpulse.ormdb.database import reset_database

    test_vars = {
        "ENVIRONMENT": "testing",
        "DATABASE_URL": f"sqlite:///{tmp_path / 'stockpulse_test.db'}",
        "DATA_DIRECTORY": str(tmp_path),
        "LOG_FILE_ENABLED": "false",
        "ENDPOINT_AUTH_TOKEN": "test_endpoint_token",
        "OPENAI_API_KEY": "sk-test-key",
    }

    with patch.dict(os.environ, test_vars):
        get_settings.cache_clear()
        yield test_vars
        reset_database()
        get_settings.cache_clear()


@pytest.fixture(autouse=True)
def clean_lru_cache():
    """Clear LRU cache between tests to avoid state pollution."""
    from stockpulse.agents.prompts import load_agent_prompts

    yield

    load_agent_prompts.cache_clear()


@pytest.fixture(autouse=True)
def mock_agents_api_calls():
    """Mock the agents Runner so no test reaches the OpenAI API."""
    with patch("stockpulse.agents.handlers.Runner") as mock_runner:
        mock_response = Mock()
        mock_response.final_output = "Mocked AI response"
        mock_runner.run = AsyncMock(return_value=mock_response)
        yield mock_runner


@pytest.fixture
def fixed_clock():
    """Clock returning 2024-03-15 14:30 UTC, advancing one minute per call."""
    start = datetime(2024, 3, 15, 14, 30, tzinfo=timezone.utc)
    calls = {"count": 0}

    def clock():
        moment = start + timedelta(minutes=calls["count"])
        calls["count"] += 1
        return moment

    return clock


@pytest.fixture
def sample_stock_payload():
    """Raw stock entries as the analysis agent returns them."""
    return {
        "stocks": [
            {
                "ticker": "AAPL",
                "company_name": "Apple Inc.",
                "current_price": "$189.84",
                "technical_score": "72",
                "technical_signal": "Bullish",
                "fundamental_score": "65",
                "fundamental_assessment": "Fairly valued",
                "overall_score": "69",
                "recommendation": "Buy",
                "confidence": "78",
                "technical_highlights": ["RSI recovering", 42, None],
                "fundamental_highlights": ["Revenue up 8%"],
                "risk_factors": ["EU regulation"],
                "conflicting_signals": "",
            },
            {
                "ticker": "MSFT",
                "company_name": "Microsoft Corp.",
                "recommendation": "Hold",
                "overall_score": "55",
            },
        ],
        "analysis_summary": "Two large caps screened.",
        "market_context": "Rates steady.",
    }


def make_result(*tickers_and_recs, summary="ok", timestamp=None):
    """Build an AnalysisResult from (ticker, recommendation) pairs."""
    return AnalysisResult(
        stocks=[
            StockAnalysis(ticker=ticker, company_name=ticker, recommendation=rec)
            for ticker, rec in tickers_and_recs
        ],
        analysis_summary=summary,
        timestamp=timestamp or datetime(2024, 3, 15, 14, 30, tzinfo=timezone.utc),
    )


@pytest.fixture
def result_factory():
    return make_result


@pytest.fixture
def ledger(fixed_clock):
    """Empty ledger with a deterministic clock."""
    return HistoryLedger(clock=fixed_clock)
