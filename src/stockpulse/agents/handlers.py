"""Remote agent definitions and the transport that calls them."""

import json
from collections.abc import Mapping
from typing import Any, Dict

from agents import Agent, Runner, WebSearchTool
from pydantic import BaseModel

from ..config.logging import get_logger
from .prompts import get_analysis_coordinator_config, get_email_alert_config
from .tools import send_alert_email

logger = get_logger(__name__)

# Load agent configurations from external prompts
_analysis_coordinator_config = get_analysis_coordinator_config()
_email_alert_config = get_email_alert_config()

# Analysis agent: screens a watch-list and replies with JSON analysis
analysis_coordinator_agent = Agent(
    name=_analysis_coordinator_config["name"],
    instructions=_analysis_coordinator_config["instructions"],
    tools=[WebSearchTool()],
    model=_analysis_coordinator_config["model"],
)

# Notification agent: formats one stock alert and emails it
email_alert_agent = Agent(
    name=_email_alert_config["name"],
    instructions=_email_alert_config["instructions"],
    tools=[send_alert_email],
    model=_email_alert_config["model"],
)

AGENTS: Dict[str, Agent] = {
    "analysis_coordinator": analysis_coordinator_agent,
    "email_alert": email_alert_agent,
}


def get_agent(agent_key: str) -> Agent:
    """Look up an agent by its key in prompts.yaml."""
    if agent_key not in AGENTS:
        raise KeyError(
            f"Agent '{agent_key}' not found. Available agents: {list(AGENTS)}"
        )
    return AGENTS[agent_key]


def _reported_failure(output: Any) -> bool:
    if isinstance(output, Mapping):
        return output.get("success") is False
    if isinstance(output, str):
        try:
            decoded = json.loads(output)
        except ValueError:
            return False
        return isinstance(decoded, dict) and decoded.get("success") is False
    return False


def _reported_error(output: Any) -> Any:
    if isinstance(output, str):
        output = json.loads(output)
    return output.get("error") or output.get("message")


def build_envelope(output: Any) -> Dict[str, Any]:
    """
    Wrap an agent's final output in a response envelope.

    Text output lands in ``response.message`` and structured output in
    ``response.result``. An output that reports ``"success": false`` marks
    the envelope as failed and carries its error text.

    Args:
        output: ``final_output`` of an agent run

    Returns:
        Envelope with ``success``, ``response``, ``raw_response`` and ``error``
    """
    if isinstance(output, BaseModel):
        output = output.model_dump(mode="json")

    envelope: Dict[str, Any] = {
        "success": True,
        "response": {"status": "success", "result": None, "message": None},
        "raw_response": None,
        "error": None,
    }

    if isinstance(output, str):
        envelope["response"]["message"] = output
        envelope["raw_response"] = output
    else:
        envelope["response"]["result"] = output
        envelope["raw_response"] = json.dumps(output, default=str)

    if _reported_failure(output):
        envelope["success"] = False
        envelope["response"]["status"] = "error"
        envelope["error"] = _reported_error(output)

    return envelope


async def call_agent(message: str, agent_key: str) -> Dict[str, Any]:
    """
    Send an instruction to a remote agent and return its response envelope.

    Transport errors propagate to the caller.

    Args:
        message: Natural-language instruction
        agent_key: Which agent to run

    Returns:
        Response envelope
    """
    agent = get_agent(agent_key)
    logger.info("Calling agent", agent=agent.name, message_length=len(message))

    response = await Runner.run(agent, message)
    envelope = build_envelope(response.final_output)

    logger.info(
        "Agent responded",
        agent=agent.name,
        success=envelope["success"],
        output_type=type(response.final_output).__name__,
    )
    return envelope
