"""Database engine and session management."""

import os
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

DEFAULT_DATABASE_URL = "sqlite:///./orchestrator.db"

# Global engine instance, created on first use
_engine: Optional[Engine] = None

# Base class for all database models
Base = declarative_base()

# Session factory, bound whenever a new engine is created
SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False)


def _build_engine(database_url: str, echo: bool) -> Engine:
    if database_url.startswith("sqlite"):
        # One shared connection so in-memory databases survive across sessions
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=echo
        )
    return create_engine(database_url, echo=echo, pool_pre_ping=True)


def get_database_engine(database_url: Optional[str] = None, echo: bool = False) -> Engine:
    """
    Get the global engine, creating it on first use.

    Args:
        database_url: Connection URL; defaults to ``ORCHESTRATOR_DATABASE_URL``
            or a local SQLite file
        echo: Log every SQL statement

    Returns:
        Engine: The global engine
    """
    global _engine

    if _engine is None:
        url = database_url or os.getenv("ORCHESTRATOR_DATABASE_URL", DEFAULT_DATABASE_URL)
        _engine = _build_engine(url, echo)
        SessionLocal.configure(bind=_engine)

    return _engine


def reset_database_engine():
    """Dispose of the global engine (mainly for testing and shutdown)."""
    global _engine
    if _engine:
        _engine.dispose()
    _engine = None


def init_database(database_url: Optional[str] = None, echo: bool = False) -> Engine:
    """Create a fresh engine for the given URL and make sure all tables exist."""
    reset_database_engine()
    engine = get_database_engine(database_url, echo=echo)
    create_tables()
    return engine


@contextmanager
def session_scope() -> Iterator[Session]:
    """Session that is rolled back on error and always closed."""
    get_database_engine()
    session = SessionLocal()
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_tables():
    """Create all database tables."""
    from . import models  # noqa: F401  (registers the models on Base.metadata)

    Base.metadata.create_all(bind=get_database_engine())


def drop_tables():
    """Drop all database tables."""
    Base.metadata.drop_all(bind=get_database_engine())
