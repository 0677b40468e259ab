"""API routers for StockPulse."""

from .analysis import router as analysis_router
from .history import router as history_router
from .notifications import router as notifications_router
from .settings import router as settings_router

__all__ = [
    "analysis_router",
    "history_router",
    "notifications_router",
    "settings_router",
]
