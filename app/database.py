"""
Database Configuration Module

This module sets up SQLAlchemy 2.0 for the Reading Tracker API.

Store Lifecycle
===============
The engine and session factory are built once when the module is imported
and are the only handle to the relational store in the process:

1. Startup: the application lifespan calls check_connection()
2. Requests: get_db() opens one session per request and closes it afterwards
3. Services: every service function receives that session explicitly
   as its first argument; none of them open connections on their own
4. Shutdown: dispose_engine() closes all pooled connections

Session Management Pattern
==========================
"Session per request": the route handler's session is handed to the
service layer, which commits or rolls back whole units of work through
app.services.transactions.run_in_transaction.
"""

import logging
from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from app.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()


def _engine_options(database_url: str) -> dict[str, Any]:
    """
    Build create_engine() keyword arguments for the configured backend.

    SQLite (used for local runs and tests) does not take the queue pool
    sizing options and needs check_same_thread disabled because FastAPI
    serves sync endpoints from a threadpool.
    """
    options: dict[str, Any] = {"echo": settings.debug}
    if make_url(database_url).get_backend_name() == "sqlite":
        options["connect_args"] = {"check_same_thread": False}
    else:
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=True,
        )
    return options


# =============================================================================
# Database Engine
# =============================================================================
engine = create_engine(settings.database_url, **_engine_options(settings.database_url))


# =============================================================================
# Session Factory
# =============================================================================
# - autocommit=False: units of work commit explicitly
# - autoflush=False: services flush before they read aggregates back
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


# =============================================================================
# Base Model Class
# =============================================================================
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    Alembic uses Base.metadata to discover tables for migrations.
    """
    pass


# =============================================================================
# Dependency Injection
# =============================================================================
def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency for FastAPI.

    Creates a session for the request, yields it to the route handler and
    closes it when the request ends. Anything left uncommitted (for
    example because the request failed half-way) is rolled back by close().

    Yields:
        SQLAlchemy Session instance
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# =============================================================================
# Lifecycle Helpers
# =============================================================================
def check_connection() -> bool:
    """Run a trivial query to verify the store is reachable."""
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.warning(f"Database connectivity check failed: {e}")
        return False


def dispose_engine() -> None:
    """Close every pooled connection. Called on application shutdown."""
    engine.dispose()
    logger.info("Database engine disposed")


def create_tables() -> None:
    """
    Create all database tables.

    For development and tests only; production schemas are managed by
    Alembic migrations.
    """
    Base.metadata.create_all(bind=engine)


def drop_tables() -> None:
    """
    Drop all database tables.

    DANGER: This deletes all data! Development and tests only.
    """
    Base.metadata.drop_all(bind=engine)
