"""Tests for agent handlers."""

import json
from unittest.mock import AsyncMock, Mock

import pytest
from pydantic import BaseModel

from stockpulse.agents.handlers import (
    AGENTS,
    analysis_coordinator_agent,
    build_envelope,
    call_agent,
    email_alert_agent,
    get_agent,
)
from stockpulse.core.normalizer import normalize_envelope


class TestAgentCreation:
    """Test that agents are created with correct configurations."""

    def test_analysis_coordinator_agent_created(self):
        assert analysis_coordinator_agent.name == "Analysis Coordinator Agent"
        assert analysis_coordinator_agent.model == "gpt-4.1"
        assert len(analysis_coordinator_agent.tools) == 1  # Web search

    def test_email_alert_agent_created(self):
        assert email_alert_agent.name == "Email Alert Agent"
        assert email_alert_agent.model == "gpt-4o-mini"
        assert len(email_alert_agent.tools) == 1  # send_alert_email

    def test_registry(self):
        assert set(AGENTS) == {"analysis_coordinator", "email_alert"}
        assert get_agent("email_alert") is email_alert_agent

        with pytest.raises(KeyError):
            get_agent("unknown")


class TestBuildEnvelope:
    """Test conversion of agent output into an envelope."""

    def test_text_output(self):
        envelope = build_envelope("plain words")

        assert envelope["success"] is True
        assert envelope["response"]["message"] == "plain words"
        assert envelope["response"]["result"] is None
        assert envelope["raw_response"] == "plain words"
        assert envelope["error"] is None

    def test_structured_output(self):
        payload = {"stocks": [{"ticker": "AAPL"}]}
        envelope = build_envelope(payload)

        assert envelope["response"]["result"] == payload
        assert json.loads(envelope["raw_response"]) == payload

    def test_pydantic_output(self):
        class Output(BaseModel):
            stocks: list

        envelope = build_envelope(Output(stocks=[{"ticker": "GE"}]))
        assert envelope["response"]["result"] == {"stocks": [{"ticker": "GE"}]}

    def test_reported_failure_text(self):
        envelope = build_envelope('{"success": false, "error": "SMTP refused"}')

        assert envelope["success"] is False
        assert envelope["response"]["status"] == "error"
        assert envelope["error"] == "SMTP refused"

    def test_reported_failure_mapping(self):
        envelope = build_envelope({"success": False, "message": "bad address"})
        assert envelope["success"] is False
        assert envelope["error"] == "bad address"

    def test_reported_success(self):
        envelope = build_envelope('{"success": true, "message": "sent"}')
        assert envelope["success"] is True

    def test_envelopes_normalize(self):
        payload = {"stocks": [{"ticker": "AAPL"}], "analysis_summary": "ok"}

        for output in (payload, json.dumps(payload)):
            result = normalize_envelope(build_envelope(output))
            assert result.tickers() == ["AAPL"]


class TestCallAgent:
    """Test the transport."""

    @pytest.mark.asyncio
    async def test_runs_named_agent(self, mock_agents_api_calls):
        mock_response = Mock()
        mock_response.final_output = '{"stocks": []}'
        mock_agents_api_calls.run = AsyncMock(return_value=mock_response)

        envelope = await call_agent("Analyze AAPL", "analysis_coordinator")

        mock_agents_api_calls.run.assert_called_once_with(
            analysis_coordinator_agent, "Analyze AAPL"
        )
        assert envelope["response"]["message"] == '{"stocks": []}'

    @pytest.mark.asyncio
    async def test_transport_errors_propagate(self, mock_agents_api_calls):
        mock_agents_api_calls.run = AsyncMock(side_effect=RuntimeError("boom"))

        with pytest.raises(RuntimeError):
            await call_agent("Analyze AAPL", "analysis_coordinator")

    @pytest.mark.asyncio
    async def test_unknown_agent(self):
        with pytest.raises(KeyError):
            await call_agent("hello", "nonexistent")
