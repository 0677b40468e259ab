"""Engine and session management for the preferences store."""

from typing import Any, Optional

from sqlalchemy import Engine, create_engine, event, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config.logging import get_logger
from ..config.settings import Settings, get_settings

logger = get_logger(__name__)

Base = declarative_base()

_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None

_SQLITE_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    "PRAGMA temp_store=MEMORY",
)


def _apply_sqlite_pragmas(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    for pragma in _SQLITE_PRAGMAS:
        cursor.execute(pragma)
    cursor.close()


def _engine_options(settings: Settings, is_sqlite: bool) -> dict[str, Any]:
    options: dict[str, Any] = {
        "echo": settings.database_echo_sql,
        "pool_pre_ping": settings.database_pool_pre_ping,
    }
    if is_sqlite:
        # One shared connection; the store is touched from the event loop
        # thread and from TestClient worker threads.
        options["connect_args"] = {"check_same_thread": False, "timeout": 30}
        options["poolclass"] = StaticPool
    else:
        options["pool_recycle"] = settings.database_pool_recycle
        options["pool_size"] = 5
        options["max_overflow"] = 10
    return options


def create_engine_from_settings(settings: Optional[Settings] = None) -> Engine:
    """Build an engine for the configured database URL."""
    settings = settings or get_settings()
    url = make_url(settings.get_database_url())
    is_sqlite = url.get_backend_name() == "sqlite"

    logger.info(
        "Creating database engine",
        backend=url.get_backend_name(),
        database=url.database,
        echo_sql=settings.database_echo_sql,
    )

    engine = create_engine(url, **_engine_options(settings, is_sqlite))
    if is_sqlite:
        event.listen(engine, "connect", _apply_sqlite_pragmas)
    return engine


def get_engine() -> Engine:
    """Process-wide engine, created on first use."""
    global _engine

    if _engine is None:
        _engine = create_engine_from_settings()
    return _engine


def get_session_factory() -> sessionmaker:
    """Process-wide session factory bound to :func:`get_engine`."""
    global _SessionLocal

    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            bind=get_engine(), autoflush=False, expire_on_commit=False
        )
    return _SessionLocal


def get_session_sync() -> Session:
    """
    Open a new session.

    Returns:
        Session: caller is responsible for closing it
    """
    return get_session_factory()()


def create_tables() -> None:
    """Create the store's tables if they do not exist."""
    from . import models  # noqa: F401  registers KeyValueEntry on Base

    Base.metadata.create_all(bind=get_engine())
    logger.info("Database tables ready")


def reset_database() -> None:
    """Dispose the engine so the next use re-reads settings."""
    global _engine, _SessionLocal

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None


def check_database_health() -> dict:
    """
    Run a trivial query against the store.

    Returns:
        dict: ``{"status": "healthy"}`` or ``{"status": "unhealthy", "error": ...}``
    """
    try:
        with get_session_sync() as session:
            session.execute(text("SELECT 1")).scalar()
        return {"status": "healthy"}
    except SQLAlchemyError as e:
        logger.error("Database health check failed", error=str(e))
        return {"status": "unhealthy", "error": str(e)}
