"""Database configuration and session management."""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from photoshelf.settings import settings


def get_engine_kwargs(database_url: str = None) -> dict:
    """Return SQLAlchemy engine kwargs with safe defaults for the configured database."""
    database_url = database_url or settings.database_url
    kwargs = {
        "pool_pre_ping": settings.db_pool_pre_ping,
        "pool_recycle": settings.db_pool_recycle,
    }

    # QueuePool sizing only applies to non-sqlite engines.
    if not database_url.startswith("sqlite"):
        kwargs["pool_size"] = settings.db_pool_size
        kwargs["max_overflow"] = settings.db_max_overflow
        kwargs["pool_timeout"] = settings.db_pool_timeout
        kwargs["pool_use_lifo"] = settings.db_pool_use_lifo

    return kwargs


def build_engine(database_url: str = None):
    """Build a database engine using configured pool and connectivity options."""
    database_url = database_url or settings.database_url
    return create_engine(database_url, **get_engine_kwargs(database_url))


# Create database engine
engine = build_engine()

# Create session factory
SessionLocal = sessionmaker(bind=engine)


def get_db():
    """Get database session for dependency injection."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
