"""Prompt catalogue for the StockPulse agents.

Agent configs, message templates and user-facing error texts live in
``prompts.yaml`` next to this module. Templates are addressed with dotted
keys such as ``alert_email.detailed``.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterator

import yaml

from ..core.models import AnalysisCriteria, EmailFormat, StockAnalysis

PROMPTS_FILE = "prompts.yaml"


@lru_cache(maxsize=1)
def load_agent_prompts() -> Dict[str, Any]:
    """
    Read and cache the prompt catalogue.

    Raises:
        FileNotFoundError: The catalogue is missing
        yaml.YAMLError: The catalogue is not valid YAML
    """
    path = Path(__file__).parent / PROMPTS_FILE
    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except FileNotFoundError:
        raise FileNotFoundError(f"Agent prompts file not found: {path}") from None
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Malformed prompts file {path}: {e}") from e


def _leaf_keys(tree: Dict[str, Any], prefix: str = "") -> Iterator[str]:
    for key, value in tree.items():
        dotted = f"{prefix}.{key}" if prefix else key
        if isinstance(value, dict):
            yield from _leaf_keys(value, dotted)
        else:
            yield dotted


def get_agent_config(agent_key: str) -> Dict[str, Any]:
    """Config (name, model, instructions) of one agent; KeyError if unknown."""
    agents = load_agent_prompts().get("agents", {})
    try:
        return agents[agent_key]
    except KeyError:
        raise KeyError(
            f"Agent '{agent_key}' not found. Available agents: {sorted(agents)}"
        ) from None


def get_template(template_key: str) -> str:
    """Template text for a dotted key; KeyError if unknown."""
    templates = load_agent_prompts().get("templates", {})
    node: Any = templates
    for part in template_key.split("."):
        if not isinstance(node, dict) or part not in node:
            raise KeyError(
                f"Template '{template_key}' not found. "
                f"Available templates: {list(_leaf_keys(templates))}"
            )
        node = node[part]
    return node


def get_analysis_coordinator_config() -> Dict[str, Any]:
    return get_agent_config("analysis_coordinator")


def get_email_alert_config() -> Dict[str, Any]:
    return get_agent_config("email_alert")


def get_error_message(error_type: str) -> str:
    """User-facing text stored under ``templates.error_messages``."""
    return get_template(f"error_messages.{error_type}")


def render_analysis_request(tickers: list[str], criteria: AnalysisCriteria) -> str:
    """Render the instruction sent to the analysis coordinator."""
    return get_template("analysis_request").format(
        tickers=", ".join(tickers),
        rsi_threshold=_number(criteria.rsi_threshold),
        ma_crossover=criteria.ma_crossover,
        volume_spike=_number(criteria.volume_spike),
        max_pe=_number(criteria.max_pe),
        min_revenue_growth=_number(criteria.min_revenue_growth),
        max_debt_to_equity=_number(criteria.max_debt_to_equity),
    )


def render_email_alert(
    stock: StockAnalysis,
    recipient: str,
    email_format: str = EmailFormat.DETAILED.value,
) -> str:
    """Render the instruction sent to the email alert agent for one stock."""
    template_key = (
        "email_alert_summary"
        if email_format == EmailFormat.SUMMARY.value
        else "email_alert_detailed"
    )
    conflicting = (
        f"Conflicting Signals: {stock.conflicting_signals}"
        if stock.conflicting_signals
        else ""
    )
    return get_template(template_key).format(
        recipient=recipient,
        ticker=stock.ticker,
        company_name=stock.company_name,
        current_price=stock.current_price,
        recommendation=stock.recommendation,
        confidence=stock.confidence,
        technical_score=stock.technical_score,
        technical_signal=stock.technical_signal,
        fundamental_score=stock.fundamental_score,
        fundamental_assessment=stock.fundamental_assessment,
        overall_score=stock.overall_score,
        technical_highlights=_bullets(stock.technical_highlights),
        fundamental_highlights=_bullets(stock.fundamental_highlights),
        risk_factors=_bullets(stock.risk_factors),
        conflicting_signals=conflicting,
    )


def _bullets(lines) -> str:
    return "\n".join(f"- {line}" for line in lines)


def _number(value: float) -> str:
    # 30.0 -> "30", 1.5 -> "1.5"
    return f"{value:g}"
