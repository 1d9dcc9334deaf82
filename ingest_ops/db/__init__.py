"""
Database package for ingest_ops.

This package contains all database-related functionality:
- models.py: SQLAlchemy ORM models (IngestRequest, Report, TimestampMixin) and enums
- database.py: Engine configuration and the get_db_session() context manager
- store.py: IngestRequestStore and ReportStore collaborators

Database Patterns:
- Session-per-operation with get_db_session()
- Stores return detached values so callers never hold a session open
"""

from .models import (
    Base,
    IngestRequest,
    IngestSource,
    IngestStatus,
    Report,
    ReportKind,
    ReportStatus,
    TERMINAL_STATUSES,
    TimestampMixin,
    utcnow,
)
from .database import (
    get_db_session,
    check_database_connection,
    configure_database,
    get_engine,
    init_database,
)
from .records import IngestRequestRecord
from .store import IngestRequestStore, ReportStore

__all__ = [
    # Models
    "Base",
    "IngestRequest",
    "IngestSource",
    "IngestStatus",
    "Report",
    "ReportKind",
    "ReportStatus",
    "TERMINAL_STATUSES",
    "TimestampMixin",
    "utcnow",
    # Database utilities
    "get_db_session",
    "check_database_connection",
    "configure_database",
    "get_engine",
    "init_database",
    # Detached records and stores
    "IngestRequestRecord",
    "IngestRequestStore",
    "ReportStore",
]
