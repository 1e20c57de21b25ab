"""
Database engine and schema setup.

The engine owns the process-wide connection pool. It is created once at
startup, handed to request handlers, and disposed of at shutdown.
"""
import logging
from typing import Any, Dict, Optional

from sqlalchemy import create_engine, insert
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Connection, Engine

from config import Settings, get_settings
from db.model import AppSettings, Base, SETTINGS_ROW_ID

logger = logging.getLogger(__name__)

# Dialects with a native INSERT ... ON CONFLICT DO NOTHING
_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def create_db_engine(settings: Optional[Settings] = None) -> Engine:
    """Create the database engine for the configured URL."""
    settings = settings or get_settings()
    url = settings.DATABASE_URL
    kwargs: Dict[str, Any] = {"pool_pre_ping": True, "future": True}

    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
    else:
        kwargs.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_recycle=1800,
        )
        if settings.IS_PRODUCTION:
            # Encrypted, but the server certificate is not verified
            kwargs["connect_args"] = {"sslmode": "require"}

    engine = create_engine(url, **kwargs)
    logger.info(f"Database engine created for {engine.url.render_as_string(hide_password=True)}")
    return engine


def ensure_schema(engine: Engine) -> None:
    """
    Create tables and the period index if absent, and make sure the
    settings singleton row exists. Safe to call on every start.
    """
    with engine.begin() as conn:
        Base.metadata.create_all(conn, checkfirst=True)

        dialect_insert = _UPSERT_INSERTS.get(conn.dialect.name)
        if dialect_insert is not None:
            conn.execute(
                dialect_insert(AppSettings.__table__)
                .values(id=SETTINGS_ROW_ID)
                .on_conflict_do_nothing(index_elements=["id"])
            )
        elif not _settings_row_exists(conn):
            conn.execute(insert(AppSettings.__table__).values(id=SETTINGS_ROW_ID))

    logger.info("Database tables ready")


def _settings_row_exists(conn: Connection) -> bool:
    table = AppSettings.__table__
    row = conn.execute(table.select().where(table.c.id == SETTINGS_ROW_ID)).first()
    return row is not None
