"""FastAPI application for the StockPulse analysis API."""

import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..config.logging import get_logger
from .dependencies import AppState, verify_auth_token
from .exceptions import setup_exception_handlers
from .health import router as health_router
from .models.responses import MessageResponse
from .routers import (
    analysis_router,
    history_router,
    notifications_router,
    settings_router,
)

logger = get_logger(__name__)


async def add_request_id_middleware(request: Request, call_next):
    """Add unique request ID to each request for tracking."""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    logger.info(
        "Request started",
        request_id=request_id,
        method=request.method,
        path=request.url.path,
        query_params=str(request.query_params),
        remote_addr=request.client.host if request.client else None,
    )

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id

    logger.info(
        "Request completed",
        request_id=request_id,
        status_code=response.status_code,
        method=request.method,
        path=request.url.path,
    )

    return response


def create_app(state: Optional[AppState] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        state: Pre-built application state. When omitted, state is loaded
            from the persisted store at startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting StockPulse API")
        if getattr(app.state, "stockpulse", None) is None:
            app.state.stockpulse = AppState.from_store()
        logger.info("StockPulse API started successfully")

        yield

        logger.info("StockPulse API shutdown completed")

    app = FastAPI(
        title="StockPulse API",
        description="""
        Watch-list analysis with recorded history and email alerts.

        ## Features

        * **Analysis**: Send a watch-list and screening criteria to the analysis agent
        * **History**: Every successful run is recorded, filterable and exportable as CSV
        * **Alerts**: Email one stock's analysis and mark its history item notified
        * **Settings**: Saved recipient, email format and default criteria
        """,
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.stockpulse = state

    app.middleware("http")(add_request_id_middleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    setup_exception_handlers(app)

    authenticated = [Depends(verify_auth_token)]

    app.include_router(health_router, prefix="/api/v1", tags=["Health & Status"])
    app.include_router(
        analysis_router,
        prefix="/api/v1",
        tags=["Analysis"],
        dependencies=authenticated,
    )
    app.include_router(
        notifications_router,
        prefix="/api/v1/notifications",
        tags=["Notifications"],
        dependencies=authenticated,
    )
    app.include_router(
        history_router,
        prefix="/api/v1/history",
        tags=["History"],
        dependencies=authenticated,
    )
    app.include_router(
        settings_router,
        prefix="/api/v1/settings",
        tags=["Settings"],
        dependencies=authenticated,
    )

    @app.get(
        "/",
        response_model=MessageResponse,
        summary="API Root Endpoint",
    )
    async def root(
        request: Request, token: str = Depends(verify_auth_token)
    ) -> MessageResponse:
        return MessageResponse.create(
            message="StockPulse API", request_id=request.state.request_id
        )

    logger.info("FastAPI application created")
    return app
