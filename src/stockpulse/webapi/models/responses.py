"""Response envelopes shared by every StockPulse endpoint."""

from datetime import datetime, timezone
from typing import Any, Dict, Generic, Optional, TypeVar

from pydantic import BaseModel, Field, field_serializer

T = TypeVar("T")


class BaseResponse(BaseModel):
    """Fields present on every response body."""

    success: bool
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    request_id: Optional[str] = Field(
        None, description="Value of the X-Request-ID response header"
    )

    @field_serializer("timestamp")
    def serialize_timestamp(self, dt: datetime) -> str:
        return dt.isoformat()


class SuccessResponse(BaseResponse, Generic[T]):
    """Successful response carrying typed ``data``."""

    success: bool = True
    data: T
    message: Optional[str] = None


class ErrorDetail(BaseModel):
    """Body of the ``error`` member of a failed response."""

    type: str = Field(..., description="Exception class or error category")
    message: str
    status_code: int
    details: Dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseResponse):
    """Failed response; the HTTP status matches ``error.status_code``."""

    success: bool = False
    error: ErrorDetail


class MessageResponse(SuccessResponse[Dict[str, str]]):
    """Response whose data is a single human-readable message."""

    @classmethod
    def create(cls, message: str, request_id: Optional[str] = None) -> "MessageResponse":
        return cls(data={"message": message}, message=message, request_id=request_id)


class StatusResponse(SuccessResponse[Dict[str, Any]]):
    """Response carrying an endpoint-specific JSON object."""

    @classmethod
    def create(
        cls,
        data: Dict[str, Any],
        message: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> "StatusResponse":
        return cls(data=data, message=message, request_id=request_id)


class HealthStatus(BaseModel):
    """Aggregate health of the service and its dependencies."""

    status: str = Field(..., description="healthy, degraded or unhealthy")
    services: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    uptime_seconds: float
    version: Optional[str] = None


class HealthResponse(BaseResponse):
    """Health check response."""

    success: bool = True
    health: HealthStatus
