"""Database configuration and session management."""

import logging
from pathlib import Path
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from client_registry.models import Base
from config import get_settings

logger = logging.getLogger(__name__)

# Get settings
settings = get_settings()

_is_sqlite = settings.database_url.startswith("sqlite")

# Ensure a data directory exists if using SQLite
if settings.database_url.startswith("sqlite:///") and ":memory:" not in settings.database_url:
    # Extract a path from sqlite URL (sqlite:///path/to/db.sqlite3)
    db_path = settings.database_url.replace("sqlite:///", "")
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

# Create engine
if _is_sqlite:
    engine = create_engine(
        settings.database_url,
        connect_args={"check_same_thread": False},
        echo=settings.database_echo,
    )
else:
    engine = create_engine(
        settings.database_url,
        echo=settings.database_echo,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        pool_recycle=3600
    )

# Enable foreign key constraints for SQLite
if _is_sqlite:
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        """Enable foreign key constraints in SQLite."""
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)


def get_db() -> Generator[Session, None, None]:
    """Dependency to get a database session.

    Yields a session scoped to one request and closes it afterwards.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Create all tables. Called on application startup."""
    logger.info(f"Creating database tables at {settings.database_url}")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")

