"""
Database Package Initialization.

============================================================
SQL PERSISTENCE LAYER
============================================================

SQLAlchemy-backed implementations of the subject stats, alert and
feedback history stores, with explicit transaction management.

REQUIRED:
- Every write runs inside transaction_scope (commit or rollback)
- Every failure raises DatabasePersistenceError
- Domain objects cross this boundary, ORM rows never do

============================================================
"""

# Core engine and session management
from .engine import (
    # Declarative base
    Base,

    # Engine creation
    DEFAULT_DATABASE_URL,
    get_database_url,
    create_database_engine,
    get_engine,

    # Session management
    create_session_factory,
    get_session_factory,
    transaction_scope,
    read_scope,

    # Database initialization
    verify_database_connection,
    create_all_tables,
    initialize_database,

    # Exceptions
    DatabasePersistenceError,
    DatabaseConnectionError,
    DatabaseInitializationError,
)

# ORM Models
from .models import (
    SubjectStatsRow,
    AlertRow,
    FeedbackHistoryRow,
)

# Stores
from .repositories import (
    SqlSubjectStatsStore,
    SqlAlertStore,
    SqlFeedbackHistory,
)


__all__ = [
    "Base",
    "DEFAULT_DATABASE_URL",
    "get_database_url",
    "create_database_engine",
    "get_engine",
    "create_session_factory",
    "get_session_factory",
    "transaction_scope",
    "read_scope",
    "verify_database_connection",
    "create_all_tables",
    "initialize_database",
    "DatabasePersistenceError",
    "DatabaseConnectionError",
    "DatabaseInitializationError",
    "SubjectStatsRow",
    "AlertRow",
    "FeedbackHistoryRow",
    "SqlSubjectStatsStore",
    "SqlAlertStore",
    "SqlFeedbackHistory",
]
