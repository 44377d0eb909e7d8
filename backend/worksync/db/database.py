"""Relational database connection and session management.

This module provides the SQLAlchemy engine, the session factory and the
session context managers used by the repositories and the persistence service.

Usage:
    from worksync.db.database import get_db_session

    with get_db_session() as db:
        db.execute(select(WorkspaceModel))
"""

from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from worksync.settings import settings
from worksync.utils import get_logger

logger = get_logger(__name__)


def _build_database_url() -> str:
    """Build database connection URL from settings.

    Returns:
        Database connection URL in SQLAlchemy format
    """
    url = settings.get_database_url_auto()

    # Convert mysql:// to mysql+pymysql:// if needed
    if url.startswith("mysql://"):
        url = url.replace("mysql://", "mysql+pymysql://", 1)

    return url


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    """SQLite only enforces ON DELETE CASCADE with foreign_keys enabled."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _set_mysql_session_timeout(dbapi_connection, connection_record) -> None:
    """Set connection timeout for MySQL."""
    cursor = dbapi_connection.cursor()
    cursor.execute("SET SESSION wait_timeout = 28800")  # 8 hours
    cursor.close()


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine configured for SQLite or MySQL.

    In-memory SQLite uses a StaticPool so every session sees the same database.

    Args:
        database_url: SQLAlchemy URL
        echo: Log SQL statements

    Returns:
        Configured engine
    """
    engine_kwargs: dict[str, Any] = {"echo": echo}
    is_sqlite = database_url.startswith("sqlite")

    if is_sqlite:
        engine_kwargs["connect_args"] = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            engine_kwargs["poolclass"] = StaticPool
        logger.info(f"Using SQLite database: {database_url}")
    else:
        engine_kwargs.update(
            {
                "pool_size": settings.mysql_pool_size,
                "max_overflow": settings.mysql_max_overflow,
                "pool_pre_ping": settings.mysql_pool_pre_ping,
                "pool_recycle": 3600,  # Recycle connections after 1 hour
            }
        )
        logger.info(f"Using MySQL database: {database_url.split('@')[1] if '@' in database_url else 'unknown'}")

    engine = create_engine(database_url, **engine_kwargs)

    if is_sqlite:
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    else:
        event.listen(engine, "connect", _set_mysql_session_timeout)

    return engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create a session factory bound to an engine."""
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


# Lazily created so importing this module never touches the filesystem
_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def get_engine() -> Engine:
    """Get the application engine, creating it on first use."""
    global _engine
    if _engine is None:
        _engine = create_db_engine(
            _build_database_url(),
            echo=settings.debug and settings.environment == "local-dev",
        )
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    """Get the application session factory, creating it on first use."""
    global _session_factory
    if _session_factory is None:
        _session_factory = create_session_factory(get_engine())
    return _session_factory


@contextmanager
def get_db_session(factory: sessionmaker[Session] | None = None) -> Generator[Session, None, None]:
    """Get database session as context manager.

    Commits on success, rolls back on any exception and re-raises it.

    Usage:
        with get_db_session() as db:
            db.execute(select(UserModel))
    """
    db = (factory or get_session_factory())()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def check_connection(engine: Engine | None = None) -> bool:
    """Check if database connection is working.

    Returns:
        True if connection is successful, False otherwise
    """
    try:
        with (engine or get_engine()).connect() as conn:
            conn.execute(text("SELECT 1"))
            return True
    except Exception as e:
        logger.error(f"Database connection check failed: {e}")
        return False


def init_db(engine: Engine | None = None) -> None:
    """Initialize database (create tables if not exist).

    This function should be called during application startup.
    """
    from worksync.db.models import Base

    try:
        Base.metadata.create_all(bind=engine or get_engine())
        logger.info("Database tables initialized")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise


def close_db() -> None:
    """Close database connections.

    This function should be called during application shutdown.
    """
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
        logger.info("Database connections closed")
    _engine = None
    _session_factory = None
