"""
Database Configuration and Session Management

This module handles SQLAlchemy setup with connection pooling.
Tenant scoping is applied in the service layer: every query filters
on the caller's company_id.
"""
from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import QueuePool, StaticPool
from app.config import get_settings
import logging

logger = logging.getLogger(__name__)

settings = get_settings()


def _engine_kwargs(url: str) -> dict:
    """Pool arguments per backend. SQLite is used for local runs and tests."""
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise every checkout sees an empty database
            kwargs["poolclass"] = StaticPool
        return kwargs
    return {
        "poolclass": QueuePool,
        "pool_size": settings.DATABASE_POOL_SIZE,
        "max_overflow": settings.DATABASE_MAX_OVERFLOW,
        "pool_pre_ping": True,
    }


def create_db_engine(url: str):
    db_engine = create_engine(url, echo=settings.DEBUG, **_engine_kwargs(url))
    event.listen(db_engine, "connect", set_connection_pragmas)
    return db_engine


def set_connection_pragmas(dbapi_connection, connection_record):
    """Set connection-level configuration on new connections."""
    cursor = dbapi_connection.cursor()
    module = type(dbapi_connection).__module__
    if module.startswith("sqlite3"):
        # SQLite ignores foreign keys unless asked, and delete conflicts depend on them
        cursor.execute("PRAGMA foreign_keys=ON")
    else:
        cursor.execute("SET TIME ZONE 'UTC'")
    cursor.close()
    logger.debug("New database connection established")


engine = create_db_engine(settings.DATABASE_URL)

# expire_on_commit=False lets services return ORM objects after commit
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False
)

# Base class for all models
Base = declarative_base()


def get_db() -> Session:
    """
    Dependency function that provides a database session.

    The session is closed after the request completes.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None):
    """
    Create tables for all registered models.

    Used for local development and tests. Production schemas are managed
    with migrations.
    """
    import app.models  # noqa: F401  registers every table on Base.metadata

    logger.warning("init_db() called - use migrations in production!")
    Base.metadata.create_all(bind=bind or engine)
