"""Exception hierarchy for the StockPulse application."""

from typing import Any, Dict, Optional


class StockPulseException(Exception):
    """Base exception for StockPulse application."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
        request_id: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.request_id = request_id


class ValidationException(StockPulseException):
    """Exception for validation errors."""

    def __init__(
        self,
        message: str = "Validation failed",
        field_errors: Optional[Dict[str, str]] = None,
        request_id: Optional[str] = None,
    ):
        super().__init__(
            message=message,
            status_code=422,
            details={"field_errors": field_errors or {}},
            request_id=request_id,
        )


class NotFoundError(StockPulseException):
    """Exception for resource not found errors."""

    def __init__(
        self, resource: str, identifier: str, request_id: Optional[str] = None
    ):
        message = f"{resource} with identifier '{identifier}' not found"
        super().__init__(
            message=message,
            status_code=404,
            details={"resource": resource, "identifier": identifier},
            request_id=request_id,
        )


class AnalysisInProgressError(StockPulseException):
    """A run for the same watch-list has not finished yet."""

    def __init__(self, watchlist: str, request_id: Optional[str] = None):
        super().__init__(
            message=f"An analysis for watch-list '{watchlist}' is already running",
            status_code=409,
            details={"watchlist": watchlist},
            request_id=request_id,
        )


class DatabaseError(StockPulseException):
    """Exception for database operation errors."""

    def __init__(self, operation: str, message: str, request_id: Optional[str] = None):
        super().__init__(
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation},
            request_id=request_id,
        )


class ConfigurationError(StockPulseException):
    """Exception for configuration errors."""

    def __init__(self, setting: str, message: str, request_id: Optional[str] = None):
        super().__init__(
            message=f"Configuration error for '{setting}': {message}",
            status_code=500,
            details={"setting": setting},
            request_id=request_id,
        )
