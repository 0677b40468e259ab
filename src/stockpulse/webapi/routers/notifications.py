"""Alert email endpoints."""

from fastapi import APIRouter, Depends, Request

from ...config.logging import get_logger
from ...core.watchlist import AnalysisSession
from ..dependencies import AppState, get_app_state, get_session
from ..models.requests import EmailAlertRequest
from ..models.responses import StatusResponse

logger = get_logger(__name__)

router = APIRouter()


@router.post(
    "/email",
    response_model=StatusResponse,
    summary="Send Stock Alert",
    description="Email one stock's analysis and mark its history item notified",
)
async def send_email_alert(
    request: Request,
    body: EmailAlertRequest,
    state: AppState = Depends(get_app_state),
    session: AnalysisSession = Depends(get_session),
):
    """
    Send one stock alert.

    - **ticker**: Stock symbol whose analysis is sent
    - **recipient**: Email address; the saved settings address otherwise
    - **history_id**: Optional history item to take the analysis from

    Returns 404 when no analysis exists for the ticker. A failed delivery
    returns 200 with ``success`` false and the error text.
    """
    request_id = getattr(request.state, "request_id", None)
    service = state.notification_service

    stock = service.locate_stock(body.ticker, session, body.history_id)
    recipient = body.recipient or state.settings.recipient_email

    logger.info(
        "Email alert requested",
        ticker=stock.ticker,
        history_id=body.history_id,
        request_id=request_id,
    )

    result = await service.send_stock_alert(
        stock,
        recipient,
        session=session,
        email_format=state.settings.email_format,
        history_id=body.history_id,
    )

    return StatusResponse.create(
        data={
            "ticker": result.ticker,
            "recipient": result.recipient,
            "success": result.success,
            "error": result.error,
            "history_id": result.history_id,
            "delivery_time_ms": result.delivery_time_ms,
        },
        message=result.error or f"Alert sent to {result.recipient}",
        request_id=request_id,
    )
