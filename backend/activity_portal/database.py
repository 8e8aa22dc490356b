"""
SQLAlchemy engine and session. Supports PostgreSQL and SQLite (local runs and tests).
Sync usage; each request gets its own session via get_db.
"""
import functools
import logging
from sqlalchemy import create_engine
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.orm import sessionmaker, declarative_base

from activity_portal.config import settings
from activity_portal.errors import BackendUnavailable

logger = logging.getLogger(__name__)

_is_sqlite = "sqlite" in settings.database_url
_connect_args = {"check_same_thread": False} if _is_sqlite else {}
engine = create_engine(
    settings.database_url,
    pool_pre_ping=not _is_sqlite,
    connect_args=_connect_args,
    echo=False,  # Set True for SQL logging during development
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def init_db(bind=None):
    """Create missing tables. Call once at app startup; PostgreSQL deployments should run alembic instead."""
    # Import all models so they register with Base before create_all
    from activity_portal.models import (  # noqa: F401
        user, activity, derived_admin_request, complaint, stored_file, alert,
    )
    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables ensured (%s)", "sqlite" if _is_sqlite else "postgresql")


def get_db():
    """Dependency: yield a DB session, close after request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def store_operation(fn):
    """Decorator for service functions taking `db` first: connection-level store failures
    roll back and surface as BackendUnavailable instead of a raw driver error."""
    @functools.wraps(fn)
    def wrapper(db, *args, **kwargs):
        try:
            return fn(db, *args, **kwargs)
        except (OperationalError, InterfaceError) as e:
            db.rollback()
            logger.error("Store unavailable during %s: %s", fn.__name__, e)
            raise BackendUnavailable() from e
    return wrapper
