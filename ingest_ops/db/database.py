"""
Database engine and session management for ingest_ops.

This module provides database connectivity with:
- Session-per-operation pattern (get_db_session context manager)
- A lazily created engine so tests and tools can point it at another URL
- NullPool plus WAL/busy-timeout pragmas for SQLite
- Error translation and file-based logging
"""

import os
from contextlib import contextmanager
from typing import Generator, Optional
from urllib.parse import urlparse

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError, OperationalError
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import NullPool

from ingest_ops.config import get_settings
from ingest_ops.logger import setup_logging, log_function
from .models import Base


db_logger = setup_logging(
    logger_name="database",
    log_file="logs/database.log",
    verbose=False,
)

SUPPORTED_SCHEMES = ("sqlite", "postgresql", "postgresql+psycopg", "postgresql+psycopg2")

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def validate_database_url(url: Optional[str]) -> tuple[bool, str]:
    """Validate the database URL format (and, for SQLite, its parent directory)."""
    if not url:
        return False, "DATABASE_URL is empty"
    try:
        parsed = urlparse(url)
    except ValueError as e:
        return False, f"Invalid database URL format: {e}"

    if parsed.scheme not in SUPPORTED_SCHEMES:
        return False, f"Unsupported database scheme: {parsed.scheme}"

    if parsed.scheme != "sqlite":
        return True, parsed.netloc

    db_path = url.split("sqlite:///", 1)[-1]
    if not db_path or db_path == url:
        return False, "Database file path is empty"
    if db_path == ":memory:":
        return True, db_path

    parent_dir = os.path.dirname(db_path)
    if parent_dir and not os.path.isdir(parent_dir):
        os.makedirs(parent_dir, exist_ok=True)
    return True, db_path


def optimize_sqlite_connection(dbapi_connection, connection_record):
    """Apply SQLite-specific settings when a connection is created."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA busy_timeout=30000")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.close()


def configure_database(database_url: Optional[str] = None, echo: bool = False) -> Engine:
    """
    Create (or replace) the process-wide engine and session factory.

    Args:
        database_url: SQLAlchemy URL. Defaults to ``Settings.database_url``.
        echo: Log every SQL statement.

    Returns:
        The configured engine.

    Raises:
        ValueError: If the URL is not usable.
    """
    global _engine, _session_factory

    url = database_url or get_settings().database_url
    is_valid, db_info = validate_database_url(url)
    if not is_valid:
        db_logger.error(f"Database configuration error: {db_info}")
        raise ValueError(f"Database configuration error: {db_info}")

    if _engine is not None:
        _engine.dispose()

    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            poolclass=NullPool,
            echo=echo,
            connect_args={"check_same_thread": False, "timeout": 30},
        )
        event.listen(engine, "connect", optimize_sqlite_connection)
    else:
        engine = create_engine(url, pool_pre_ping=True, echo=echo)

    _engine = engine
    _session_factory = sessionmaker(
        autocommit=False, autoflush=False, expire_on_commit=False, bind=engine
    )
    db_logger.info(f"Database configured: {db_info}")
    return engine


def get_engine() -> Engine:
    if _engine is None:
        configure_database()
    return _engine


def get_session_factory() -> sessionmaker:
    if _session_factory is None:
        configure_database()
    return _session_factory


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """
    Context manager for database sessions (session-per-operation pattern).

    Usage:
        with get_db_session() as session:
            session.add(IngestRequest(url=url, user_id=user_id, source=source))
            session.commit()
    """
    session = get_session_factory()()
    try:
        db_logger.debug("Database session created")
        yield session

    except OperationalError as e:
        db_logger.error(f"Database operational error: {e}")
        session.rollback()

        error_msg = str(e.orig) if hasattr(e, "orig") else str(e)
        if "database is locked" in error_msg.lower():
            raise OperationalError(
                "Database is locked. Another process may be writing to it; try again.",
                None,
                e.orig,
            ) from e
        elif "no such table" in error_msg.lower():
            raise OperationalError(
                "Database table does not exist. Run migrations or `ingest-ops init-db` first.",
                None,
                e.orig,
            ) from e
        raise

    except SQLAlchemyError as e:
        db_logger.error(f"Database error: {e}")
        session.rollback()
        raise

    except Exception:
        session.rollback()
        raise

    finally:
        session.close()
        db_logger.debug("Database session closed")


@log_function(logger_name="database", log_execution_time=True)
def check_database_connection() -> bool:
    """
    Check if database connection is working.

    Returns:
        bool: True if connection is successful, False otherwise
    """
    try:
        with get_db_session() as session:
            session.execute(text("SELECT 1"))
            db_logger.info("Database connection test successful")
            return True
    except SQLAlchemyError as e:
        db_logger.error(f"Database connection test failed: {e}")
        return False


@log_function(logger_name="database", log_execution_time=True)
def init_database() -> None:
    """
    Create all tables defined in models.

    Note: This does not run Alembic migrations. Use alembic commands for migrations.
    """
    Base.metadata.create_all(bind=get_engine())
    db_logger.info("Database tables created successfully")
