"""
Database connection management for Detailboard.
Handles SQLAlchemy engine creation, session management, and connection verification.
"""

import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

# SQLAlchemy Base for model declarations
Base = declarative_base()

# Engine and SessionLocal are initialized by init_engine() from the app factory
engine = None
SessionLocal = None


def normalize_database_url(url):
    """Handle the legacy postgres:// scheme some hosts still hand out."""
    if url and url.startswith('postgres://'):
        return url.replace('postgres://', 'postgresql://', 1)
    return url


def init_engine(database_url, engine_options=None):
    """
    Create the SQLAlchemy engine and session factory for the given URL.

    In-memory SQLite URLs get a StaticPool so every session sees the same
    database.
    """
    global engine, SessionLocal

    url = normalize_database_url(database_url)
    if not url:
        raise RuntimeError(
            "DATABASE_URL not configured. Please set the DATABASE_URL environment variable."
        )

    options = dict(engine_options or {})
    if url.startswith('sqlite'):
        options.pop('pool_recycle', None)
        options.setdefault('connect_args', {'check_same_thread': False})
        if url in ('sqlite://', 'sqlite:///:memory:'):
            options['poolclass'] = StaticPool

    try:
        engine = create_engine(url, **options)
    except Exception as e:
        logger.error(f"Failed to create database engine: {e}")
        raise RuntimeError(f"Failed to connect to database: {e}")

    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    logger.info("Database engine created successfully")
    return engine


def get_engine():
    """Get the SQLAlchemy engine."""
    if engine is None:
        raise RuntimeError("Database engine not initialized. Call init_engine() first.")
    return engine


def get_session_factory():
    """Get the session factory."""
    if SessionLocal is None:
        raise RuntimeError("Database engine not initialized. Call init_engine() first.")
    return SessionLocal


@contextmanager
def get_db_session():
    """
    Context manager for getting a database session.
    Commits on success, rolls back on any exception.

    Example:
        with get_db_session() as db:
            goals = db.query(Goal).all()
    """
    session_factory = get_session_factory()
    db = session_factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def check_db_connection():
    """
    Verify that the database connection is working.
    Returns True if connection is successful, raises exception otherwise.
    """
    try:
        eng = get_engine()
        with eng.connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
        logger.info("Database connection verified successfully")
        return True
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        raise RuntimeError(f"Cannot connect to database: {e}")


def init_db():
    """
    Create all tables.
    Production deployments run the Alembic migrations instead.
    """
    # Import models to ensure they're registered with Base
    from database import models  # noqa: F401

    Base.metadata.create_all(bind=get_engine())
    logger.info("Database tables created/verified")


def is_db_configured():
    """Check if the engine has been initialized (without failing)."""
    return engine is not None
