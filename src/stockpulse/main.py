"""
StockPulse - Main application entry point.

Serves the analysis API, or with ``-analyze AAPL,MSFT`` runs a single
analysis from the terminal and records it in history.
"""

import asyncio
import sys

import uvicorn
from dotenv import load_dotenv

from stockpulse.config.logging import get_logger, log_error
from stockpulse.config.settings import get_settings
from stockpulse.core.query import export_rows, rows_to_csv
from stockpulse.core.watchlist import AnalysisSession
from stockpulse.ormdb.store import PreferencesStore
from stockpulse.services import AnalysisService
from stockpulse.utils.config import initialize_application, missing_environment


async def analyze_once(raw_tickers: str) -> int:
    """Run one analysis for a comma-separated watch-list and print the rows."""
    logger = get_logger(__name__)

    store = PreferencesStore()
    ledger = store.load_history()
    saved = store.load_settings()

    session = AnalysisSession(criteria=saved.default_criteria)
    session.set_tickers(raw_tickers.split(","))

    service = AnalysisService(ledger, store)
    outcome = await service.run_analysis(session)

    if not outcome.success:
        logger.error("Analysis failed", error=outcome.error)
        print(f"Error: {outcome.error}")
        return 1

    print(outcome.result.analysis_summary)
    print(rows_to_csv(export_rows([outcome.history_item])), end="")
    return 0


def main() -> None:
    """Main application entry point."""
    load_dotenv()
    initialize_application()

    logger = get_logger(__name__)
    logger.info("Starting StockPulse application")

    settings = get_settings()

    missing = missing_environment()
    if missing:
        logger.error("Environment validation failed", missing=missing)
        print(
            "Please set the required environment variables before running the application."
        )
        print(f"Required variables: {', '.join(missing)}")
        sys.exit(1)

    logger.info("Environment validation passed")

    if "-analyze" in sys.argv:
        try:
            raw_tickers = sys.argv[sys.argv.index("-analyze") + 1]
        except IndexError as e:
            logger.error("Invalid analyze command", error=str(e))
            print("Error: Please provide comma-separated tickers after -analyze.")
            sys.exit(1)

        try:
            sys.exit(asyncio.run(analyze_once(raw_tickers)))
        except KeyboardInterrupt:
            logger.info("Received interrupt signal")
            print("\nAnalysis cancelled.")
            sys.exit(130)
        except Exception as e:
            log_error(e, command="analyze", tickers=raw_tickers)
            print(f"Error: {e}")
            sys.exit(1)

    logger.info(
        "Starting API server",
        host=settings.endpoint_host,
        port=settings.endpoint_port,
    )
    print("Starting StockPulse API...")

    try:
        uvicorn.run(
            "stockpulse.webapi.app:create_app",
            factory=True,
            host=settings.endpoint_host,
            port=settings.endpoint_port,
            reload=settings.api_reload,
            log_level=settings.api_log_level.lower(),
        )
    except KeyboardInterrupt:
        logger.info("Received interrupt signal")
        print("\nShutting down...")


if __name__ == "__main__":
    main()
