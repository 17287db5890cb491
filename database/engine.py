"""
Database Persistence Layer - Core Engine.

============================================================
RESPONSIBILITY
============================================================
Engine creation, session factories and transaction scopes for the
SQL-backed stores.

- SQLAlchemy ORM, any SQLAlchemy URL (PostgreSQL in production,
  SQLite for development and tests)
- Explicit transaction boundaries
- Failures surface as DatabasePersistenceError, never silently

============================================================
"""

import os
import logging
from typing import Generator, Optional
from contextlib import contextmanager

from sqlalchemy import Engine, create_engine, event, text
from sqlalchemy.orm import sessionmaker, Session, declarative_base
from sqlalchemy.exc import SQLAlchemyError, OperationalError
from sqlalchemy.pool import QueuePool, StaticPool

from dotenv import load_dotenv

from core.exceptions import PersistenceError

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///./feedback_reputation.db"

# =============================================================
# DECLARATIVE BASE
# =============================================================

Base = declarative_base()

# =============================================================
# CUSTOM EXCEPTIONS
# =============================================================


class DatabasePersistenceError(PersistenceError):
    """Raised when database persistence fails."""
    pass


class DatabaseConnectionError(DatabasePersistenceError):
    """Raised when database connection fails."""
    pass


class DatabaseInitializationError(DatabasePersistenceError):
    """Raised when database initialization fails."""
    pass


# =============================================================
# DATABASE ENGINE
# =============================================================

_engine: Optional[Engine] = None
_SessionFactory: Optional[sessionmaker] = None


def get_database_url() -> str:
    """Get database URL from environment."""
    url = os.getenv("DATABASE_URL")
    if url and url.startswith("postgresql+asyncpg"):
        # Stores are synchronous
        url = url.replace("postgresql+asyncpg", "postgresql")

    if not url:
        url = DEFAULT_DATABASE_URL
        logger.warning(f"DATABASE_URL not set, using default: {url}")

    return url


def _redact(url: str) -> str:
    return url.split("@")[-1]


def create_database_engine(
    database_url: Optional[str] = None,
    pool_size: int = 10,
    max_overflow: int = 20,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
    echo: bool = False,
) -> Engine:
    """
    Create a SQLAlchemy engine.

    SQLite URLs get a single shared connection for in-memory
    databases; server databases get a QueuePool.

    Args:
        database_url: SQLAlchemy URL (defaults to DATABASE_URL)
        pool_size: Number of connections to keep in pool
        max_overflow: Max connections beyond pool_size
        pool_timeout: Seconds to wait for available connection
        pool_recycle: Recycle connections after N seconds
        echo: Log SQL statements

    Returns:
        SQLAlchemy Engine
    """
    url = database_url or get_database_url()
    logger.info(f"Creating database engine for: {_redact(url)}")

    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url in ("sqlite://", "sqlite+pysqlite://"):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, echo=echo, **kwargs)
    else:
        engine = create_engine(
            url,
            poolclass=QueuePool,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_timeout=pool_timeout,
            pool_recycle=pool_recycle,
            echo=echo,
        )

    @event.listens_for(engine, "connect")
    def on_connect(dbapi_conn, connection_record):
        logger.debug("Database connection established")

    return engine


def get_engine() -> Engine:
    """Get the process-wide engine, creating it if necessary."""
    global _engine
    if _engine is None:
        _engine = create_database_engine()
    return _engine


def create_session_factory(engine: Engine) -> sessionmaker:
    """Session factory bound to ``engine``."""
    return sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


def get_session_factory() -> sessionmaker:
    """Get the process-wide session factory, creating it if necessary."""
    global _SessionFactory
    if _SessionFactory is None:
        _SessionFactory = create_session_factory(get_engine())
    return _SessionFactory


# =============================================================
# SESSION MANAGEMENT
# =============================================================


@contextmanager
def transaction_scope(
    session_factory: Optional[sessionmaker] = None,
) -> Generator[Session, None, None]:
    """
    Context manager for explicit transaction boundaries.

    Commits only if no exception occurs.
    Rolls back on ANY exception.

    Usage:
        with transaction_scope(factory) as session:
            session.merge(row)
            # Commits automatically at end
    """
    session = (session_factory or get_session_factory())()
    try:
        yield session
        session.commit()
        logger.debug("Database transaction committed successfully")
    except SQLAlchemyError as e:
        logger.error(f"Database transaction failed, rolling back: {e}")
        session.rollback()
        raise DatabasePersistenceError(f"Transaction failed: {e}", cause=e) from e
    except Exception as e:
        logger.error(f"Transaction failed with unexpected error: {e}")
        session.rollback()
        raise
    finally:
        session.close()


@contextmanager
def read_scope(
    session_factory: Optional[sessionmaker] = None,
) -> Generator[Session, None, None]:
    """Read-only session; database errors become DatabasePersistenceError."""
    session = (session_factory or get_session_factory())()
    try:
        yield session
    except SQLAlchemyError as e:
        logger.error(f"Database read failed: {e}")
        raise DatabasePersistenceError(f"Read failed: {e}", cause=e) from e
    finally:
        session.close()


# =============================================================
# DATABASE INITIALIZATION
# =============================================================


def verify_database_connection(engine: Optional[Engine] = None) -> bool:
    """
    Verify the database answers.

    Raises:
        DatabaseConnectionError if connection fails
    """
    engine = engine or get_engine()
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
            logger.info("Database connection verified successfully")
            return True
    except OperationalError as e:
        logger.error(f"Database connection failed: {e}")
        raise DatabaseConnectionError(f"Cannot connect to database: {e}", cause=e) from e


def create_all_tables(engine: Optional[Engine] = None) -> None:
    """
    Create all tables defined in ORM models.

    Raises:
        DatabaseInitializationError if table creation fails
    """
    from . import models  # noqa: F401

    engine = engine or get_engine()
    try:
        logger.info("Creating database tables...")
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")
    except SQLAlchemyError as e:
        logger.error(f"Failed to create database tables: {e}")
        raise DatabaseInitializationError(f"Table creation failed: {e}", cause=e) from e


def initialize_database(engine: Optional[Engine] = None) -> sessionmaker:
    """
    Verify the connection, create tables and return a session factory.

    This MUST be called at application startup when SQL stores are used.
    """
    engine = engine or get_engine()
    logger.info("=" * 60)
    logger.info("INITIALIZING DATABASE PERSISTENCE LAYER")
    logger.info("=" * 60)

    verify_database_connection(engine)
    create_all_tables(engine)

    logger.info("DATABASE INITIALIZATION COMPLETE")
    return create_session_factory(engine)


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
]
