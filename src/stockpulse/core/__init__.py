"""Response normalization and analysis-record lifecycle."""

from .coercion import safe_array, safe_number
from .envelope import parse_agent_response
from .ledger import HistoryLedger
from .models import (
    AlertHistoryItem,
    AnalysisCriteria,
    AnalysisResult,
    AppSettings,
    ExportRow,
    HistoryFilter,
    StockAnalysis,
)
from .normalizer import normalize_analysis, normalize_envelope
from .query import export_rows, filter_history, rows_to_csv
from .watchlist import AnalysisSession

__all__ = [
    "safe_array",
    "safe_number",
    "parse_agent_response",
    "HistoryLedger",
    "AlertHistoryItem",
    "AnalysisCriteria",
    "AnalysisResult",
    "AppSettings",
    "ExportRow",
    "HistoryFilter",
    "StockAnalysis",
    "normalize_analysis",
    "normalize_envelope",
    "export_rows",
    "filter_history",
    "rows_to_csv",
    "AnalysisSession",
]
