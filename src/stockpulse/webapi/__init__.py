"""HTTP API for StockPulse."""

from .app import create_app

__all__ = ["create_app"]
