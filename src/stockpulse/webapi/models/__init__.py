"""API request and response models."""

from .requests import AnalysisRequest, EmailAlertRequest
from .responses import (
    BaseResponse,
    ErrorDetail,
    ErrorResponse,
    HealthResponse,
    HealthStatus,
    MessageResponse,
    StatusResponse,
    SuccessResponse,
)

__all__ = [
    "AnalysisRequest",
    "EmailAlertRequest",
    "BaseResponse",
    "ErrorDetail",
    "ErrorResponse",
    "HealthResponse",
    "HealthStatus",
    "MessageResponse",
    "StatusResponse",
    "SuccessResponse",
]
