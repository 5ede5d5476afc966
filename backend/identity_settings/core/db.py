"""Database configuration and engine management.

The database location comes from `DATABASE_URL`. When it is unset, a SQLite
file named `identity_settings.db` is used inside `SETTINGS_DB_DIR`
(default `./data`). PostgreSQL is the production target.
"""

from pathlib import Path
import logging
import os

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

DEFAULT_DB_FILENAME = "identity_settings.db"
DEFAULT_DB_DIR = Path("./data")

logger = logging.getLogger(__name__)


def _ensure_dir(path: Path) -> tuple[bool, str]:
    try:
        path.mkdir(parents=True, exist_ok=True)
        if not os.access(path, os.W_OK):
            return False, "directory not writable"
        return True, ""
    except OSError as exc:
        return False, str(exc)


def _build_sqlite_url(db_dir: Path) -> str:
    db_file = db_dir / DEFAULT_DB_FILENAME
    logger.info("DB file path: %s", db_file)
    # `sqlite:///` + absolute path results in four slashes (sqlite:////...) which SQLAlchemy expects
    return f"sqlite:///{db_file.resolve()}"


def _resolve_database_url() -> str:
    url = os.getenv("DATABASE_URL", "").strip()
    if url:
        return url

    db_dir = Path(os.getenv("SETTINGS_DB_DIR", "").strip() or DEFAULT_DB_DIR)
    ok, reason = _ensure_dir(db_dir)
    if not ok:
        logger.error("Database directory '%s' is not usable: %s", db_dir, reason)
        raise SystemExit(1)
    return _build_sqlite_url(db_dir)


def _resolve_sql_echo() -> bool | str:
    """Resolve SQL echo flag from environment.

    Supports the following values for `LOG_SQL_ECHO`:
    - "" (unset or empty): returns False (no SQL echo)
    - truthy ("1", "true", "yes", "on"): returns True (INFO-level statements)
    - "debug": returns "debug" (DEBUG-level with parameter values)
    Any other value defaults to False.
    """
    raw = os.getenv("LOG_SQL_ECHO", "").strip().lower()
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("debug", "2", "verbose"):
        return "debug"
    return False


_engine: Engine | None = None

# Create base class for models
Base = declarative_base()


def get_engine() -> Engine:
    """Create the SQLAlchemy engine lazily and cache it for the process."""
    global _engine
    if _engine is not None:
        return _engine

    url = _resolve_database_url()
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False  # Required for SQLite

    _engine = create_engine(
        url,
        connect_args=connect_args,
        echo=_resolve_sql_echo(),
        pool_pre_ping=True,
    )
    logger.info("DB engine created | dialect=%s", _engine.dialect.name)
    return _engine


def init_db(engine: Engine | None = None) -> None:
    """Create missing tables.

    Safety principle: NEVER drop tables automatically in application code.
    Schema changes belong to migrations.
    """
    # Import models so Base.metadata has the complete schema
    from identity_settings.models import GlobalSettings  # noqa: F401

    logger.info("init_db: creating tables if missing")
    Base.metadata.create_all(bind=engine or get_engine())
    logger.info("init_db: ensured tables exist")
