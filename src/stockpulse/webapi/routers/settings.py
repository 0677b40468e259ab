"""User settings endpoints."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.exc import SQLAlchemyError

from ...config.logging import get_logger
from ...core.models import AppSettings
from ...exceptions import DatabaseError
from ..dependencies import AppState, get_app_state
from ..models.responses import StatusResponse

logger = get_logger(__name__)

router = APIRouter()


@router.get(
    "",
    response_model=StatusResponse,
    summary="Get Settings",
    description="Saved recipient, email format and default criteria",
)
async def get_app_settings(
    request: Request,
    state: AppState = Depends(get_app_state),
):
    request_id = getattr(request.state, "request_id", None)
    return StatusResponse.create(
        data=state.settings.model_dump(mode="json"), request_id=request_id
    )


@router.put(
    "",
    response_model=StatusResponse,
    summary="Save Settings",
    description="Replace the saved settings",
)
async def save_app_settings(
    request: Request,
    body: AppSettings,
    state: AppState = Depends(get_app_state),
):
    """
    Save settings and use them for subsequent runs.

    Sessions that already exist keep their current criteria.
    """
    request_id = getattr(request.state, "request_id", None)

    if state.store is not None:
        try:
            state.store.save_settings(body)
        except SQLAlchemyError as e:
            logger.error(
                "Failed to save settings",
                error=str(e),
                request_id=request_id,
                exc_info=True,
            )
            raise DatabaseError("save", str(e), request_id=request_id)

    state.settings = body
    logger.info("Settings updated", request_id=request_id)

    return StatusResponse.create(
        data=body.model_dump(mode="json"),
        message="Settings saved",
        request_id=request_id,
    )
