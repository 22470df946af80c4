"""
core/db.py -- SQLAlchemy engine bootstrap shared by the auth and document stores.

Both stores live in the same database, so the app builds one Engine here and
hands it to each store. Swapping SQLite for PostgreSQL is a connection string
change: set DATABASE_URL, or set DB_HOST and friends and let
build_database_url() assemble the URL.

wait_for_db() mirrors the container startup reality: the database may still be
booting when the API starts, so we retry a cheap SELECT 1 a few times before
giving up.

Layer rule: no imports from api/, auth/, documents/, or cache/.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import URL, Engine
from sqlalchemy.exc import OperationalError

from core.config import Settings

logger = logging.getLogger("astra.db")

_DEFAULT_SQLITE_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'astra.db'}"


def build_database_url(settings: Settings) -> str:
    """Resolve the database URL from settings.

    Priority: DATABASE_URL, then DB_HOST/DB_PORT/DB_USER/DB_PASSWORD/DB_NAME
    (PostgreSQL), then a SQLite file next to the project root.
    """
    if settings.database_url:
        return settings.database_url
    if settings.db_host:
        url = URL.create(
            "postgresql",
            username=settings.db_user or None,
            password=settings.db_password or None,
            host=settings.db_host,
            port=settings.db_port,
            database=settings.db_name or None,
        )
        return url.render_as_string(hide_password=False)
    return _DEFAULT_SQLITE_URL


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def create_db_engine(db_url: str) -> Engine:
    """Create an Engine. SQLite connections may be shared across worker threads."""
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_wal_mode)
    return engine


def wait_for_db(engine: Engine, attempts: int = 10, delay: float = 3.0) -> None:
    """Block until the database answers SELECT 1, retrying on OperationalError.

    Raises the last OperationalError after `attempts` failed tries.
    """
    last_exc: OperationalError | None = None
    for attempt in range(1, attempts + 1):
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return
        except OperationalError as exc:
            last_exc = exc
            logger.warning("DB connection failed (attempt %d/%d): %s", attempt, attempts, exc)
            if attempt < attempts:
                time.sleep(delay)
    logger.error("Could not connect to DB after %d attempts", attempts)
    if last_exc is not None:
        raise last_exc
