"""Analysis run and session endpoints."""

from fastapi import APIRouter, Depends, Request

from ...config.logging import get_logger
from ...core.watchlist import AnalysisSession
from ...exceptions import AnalysisInProgressError, NotFoundError
from ..dependencies import AppState, get_app_state, get_session
from ..models.requests import AnalysisRequest
from ..models.responses import StatusResponse

logger = get_logger(__name__)

router = APIRouter()


def session_data(session: AnalysisSession, running: bool = False) -> dict:
    """Serializable view of a session's watch-list and per-ticker email status."""
    return {
        "tickers": list(session.tickers),
        "running": running,
        "criteria": session.criteria.model_dump(),
        "last_error": session.last_error,
        "has_result": session.last_result is not None,
        "email_status": {
            ticker: {"status": state.status.value, "message": state.message}
            for ticker, state in session.email_status.items()
        },
    }


@router.post(
    "/analysis",
    response_model=StatusResponse,
    summary="Run Analysis",
    description="Analyze a watch-list and record the result in history",
)
async def run_analysis(
    request: Request,
    body: AnalysisRequest,
    state: AppState = Depends(get_app_state),
    session: AnalysisSession = Depends(get_session),
):
    """
    Run one analysis for the given tickers.

    - **tickers**: Stock symbols to analyze
    - **criteria**: Optional screening criteria; saved defaults otherwise

    A run that produces no result still returns 200 with ``status`` set to
    ``failed`` and the user-facing error. A request made while this session,
    or another session with the same watch-list, has a run in flight is
    rejected with 409 and leaves the session unchanged.
    """
    request_id = getattr(request.state, "request_id", None)

    state.analysis_service.check_available(session, body.tickers)
    session.set_tickers(body.tickers)
    session.criteria = body.criteria or state.settings.default_criteria.model_copy()

    logger.info(
        "Analysis requested",
        tickers=session.tickers,
        request_id=request_id,
    )

    outcome = await state.analysis_service.run_analysis(session)

    data = {
        "status": "completed" if outcome.success else "failed",
        "error": outcome.error,
        "history_id": outcome.history_item.id if outcome.history_item else None,
        "result": outcome.result.model_dump(mode="json") if outcome.result else None,
        "processing_time_ms": outcome.processing_time_ms,
    }
    return StatusResponse.create(
        data=data,
        message=outcome.error or "Analysis completed",
        request_id=request_id,
    )


@router.get(
    "/session",
    response_model=StatusResponse,
    summary="Get Session",
    description="Current watch-list, criteria and per-ticker email status",
)
async def get_current_session(
    request: Request,
    state: AppState = Depends(get_app_state),
    session: AnalysisSession = Depends(get_session),
):
    request_id = getattr(request.state, "request_id", None)
    running = state.analysis_service.is_running(session)
    return StatusResponse.create(
        data=session_data(session, running=running), request_id=request_id
    )


@router.delete(
    "/session/tickers/{ticker}",
    response_model=StatusResponse,
    summary="Remove Ticker",
    description="Drop one ticker from the session's watch-list",
)
async def remove_session_ticker(
    request: Request,
    ticker: str,
    state: AppState = Depends(get_app_state),
    session: AnalysisSession = Depends(get_session),
):
    """
    Remove a ticker from the watch-list of this session.

    The ticker is matched after trimming and upper-casing. Unknown tickers
    return 404; a session with a run in flight returns 409.
    """
    request_id = getattr(request.state, "request_id", None)

    if state.analysis_service.is_running(session):
        raise AnalysisInProgressError(session.watchlist_key, request_id=request_id)
    if not session.remove_ticker(ticker):
        raise NotFoundError("Ticker", ticker, request_id=request_id)

    logger.info(
        "Ticker removed", ticker=ticker, tickers=session.tickers, request_id=request_id
    )

    return StatusResponse.create(
        data=session_data(session),
        message="Ticker removed",
        request_id=request_id,
    )
