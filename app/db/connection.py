"""
Database connection and session management.
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from contextlib import contextmanager
from typing import Generator

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger("db.connection")

# Lazy initialization - don't connect at import time
_engine = None
_SessionLocal = None


def _get_engine():
    """Get or create database engine (lazy initialization)."""
    global _engine
    if _engine is None:
        options = {"echo": settings.database_echo, "pool_pre_ping": True}
        if settings.database_url.startswith("sqlite"):
            options["connect_args"] = {"check_same_thread": False}
        else:
            options.update(pool_size=5, max_overflow=10, pool_timeout=5)
        _engine = create_engine(settings.database_url, **options)
    return _engine


def _get_session_local():
    """Get or create session factory (lazy initialization)."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_get_engine())
    return _SessionLocal


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """
    Unit of work: commits when the block succeeds, rolls back otherwise.

    Stores only flush, so everything written inside one block (execution,
    answers, scores, incident) lands together or not at all.
    """
    SessionLocal = _get_session_local()
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Database transaction rolled back: {e}")
        raise
    finally:
        db.close()


def get_db() -> Generator[Session, None, None]:
    """Request-scoped session dependency."""
    with get_db_session() as db:
        yield db


def init_db():
    """Initialize database tables."""
    from app.db.models import Base

    logger.info("Creating database tables...")
    # checkfirst=True skips creating tables/indexes that already exist
    Base.metadata.create_all(bind=_get_engine(), checkfirst=True)
    logger.info("Database tables created successfully")


def get_engine():
    """Get database engine (for external use)."""
    return _get_engine()
