"""History query and export endpoints."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response

from ...config.logging import get_logger
from ...core.models import HistoryFilter
from ...core.query import export_filename, export_rows, filter_history, rows_to_csv
from ...exceptions import NotFoundError
from ..dependencies import AppState, get_app_state
from ..models.responses import StatusResponse

logger = get_logger(__name__)

router = APIRouter()


def history_filter(
    ticker: str = Query("", description="Substring of a ticker in the item"),
    recommendation: str = Query(
        "All", description="Substring of a recommendation, or 'All'"
    ),
    date_from: Optional[date] = Query(None, description="First day, inclusive"),
    date_to: Optional[date] = Query(None, description="Last day, inclusive"),
) -> HistoryFilter:
    return HistoryFilter(
        ticker=ticker,
        recommendation=recommendation,
        date_from=date_from,
        date_to=date_to,
    )


@router.get(
    "",
    response_model=StatusResponse,
    summary="Get History",
    description="History items matching the filter, most recent first",
)
async def get_history(
    request: Request,
    criteria: HistoryFilter = Depends(history_filter),
    state: AppState = Depends(get_app_state),
):
    request_id = getattr(request.state, "request_id", None)

    items = filter_history(state.ledger, criteria)

    logger.info(
        "History requested",
        filter=criteria.model_dump(mode="json"),
        match_count=len(items),
        request_id=request_id,
    )

    return StatusResponse.create(
        data={
            "items": [item.model_dump(mode="json") for item in items],
            "total_count": len(items),
            "filter": criteria.model_dump(mode="json"),
        },
        request_id=request_id,
    )


@router.get(
    "/export",
    summary="Export History",
    description="CSV download with one row per analyzed stock",
    response_class=Response,
)
async def export_history(
    request: Request,
    criteria: HistoryFilter = Depends(history_filter),
    state: AppState = Depends(get_app_state),
):
    request_id = getattr(request.state, "request_id", None)

    rows = export_rows(filter_history(state.ledger, criteria))
    filename = export_filename()

    logger.info(
        "History exported", row_count=len(rows), request_id=request_id
    )

    return Response(
        content=rows_to_csv(rows),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get(
    "/{item_id}",
    response_model=StatusResponse,
    summary="Get History Item",
)
async def get_history_item(
    request: Request,
    item_id: str,
    state: AppState = Depends(get_app_state),
):
    request_id = getattr(request.state, "request_id", None)

    item = state.ledger.get(item_id)
    if item is None:
        raise NotFoundError("History item", item_id, request_id=request_id)

    return StatusResponse.create(
        data=item.model_dump(mode="json"), request_id=request_id
    )
