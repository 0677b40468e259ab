"""Service layer coordinating agents, the history ledger and persistence."""

from .analysis_service import AnalysisOutcome, AnalysisService
from .notification_service import NotificationResult, NotificationService

__all__ = [
    "AnalysisOutcome",
    "AnalysisService",
    "NotificationResult",
    "NotificationService",
]
