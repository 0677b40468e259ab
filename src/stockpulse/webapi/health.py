"""Health check endpoint for the StockPulse API."""

import time
from typing import Any, Dict

from fastapi import APIRouter

from .. import __version__
from ..config.logging import get_logger
from ..config.settings import get_settings
from ..ormdb.database import check_database_health
from .models.responses import HealthResponse, HealthStatus

logger = get_logger(__name__)
router = APIRouter()

# Track application start time for uptime calculation
_app_start_time = time.time()


def check_configuration_health() -> Dict[str, Any]:
    """Check which agent and delivery settings are configured."""
    settings = get_settings()

    checks = {
        "openai_configured": bool(settings.openai_api_key),
        "auth_token_configured": bool(settings.endpoint_auth_token),
    }
    optional_checks = {
        "smtp_configured": bool(settings.smtp_host),
    }

    return {
        "status": "healthy" if all(checks.values()) else "degraded",
        "checks": {**checks, **optional_checks},
        "required_checks_passed": all(checks.values()),
        "optional_checks_passed": all(optional_checks.values()),
    }


@router.get("/health", response_model=HealthResponse, summary="Basic Health Check")
async def basic_health_check():
    """
    Perform a basic health check.

    Returns the overall status, store connectivity, configuration status
    and application uptime.
    """
    services = {
        "database": check_database_health(),
        "configuration": check_configuration_health(),
    }

    statuses = [s.get("status", "unknown") for s in services.values()]
    if "unhealthy" in statuses:
        overall_status = "unhealthy"
    elif "degraded" in statuses:
        overall_status = "degraded"
    else:
        overall_status = "healthy"

    health_status = HealthStatus(
        status=overall_status,
        services=services,
        uptime_seconds=time.time() - _app_start_time,
        version=__version__,
    )

    logger.debug("Basic health check completed", status=overall_status)
    return HealthResponse(success=True, health=health_status)
