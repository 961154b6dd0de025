"""
Database setup for the onepost publication engine.
"""

import os
from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base

# Database path - configurable via environment variable
DB_PATH = os.getenv("ONEPOST_DB_PATH", str(Path(__file__).parent.parent.parent / "data" / "onepost.db"))

# Full URL wins over the SQLite path when set (e.g. postgresql+psycopg://...)
SQLALCHEMY_DATABASE_URL = os.getenv("ONEPOST_DATABASE_URL", f"sqlite:///{DB_PATH}")


def make_engine(url: str, **kwargs) -> Engine:
    """Create an engine, applying the SQLite connection tweaks when needed."""
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})

    new_engine = create_engine(url, **kwargs)

    if new_engine.dialect.name == "sqlite":
        # Enable foreign keys for SQLite
        @event.listens_for(new_engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return new_engine


if SQLALCHEMY_DATABASE_URL == f"sqlite:///{DB_PATH}":
    # Ensure data directory exists
    Path(DB_PATH).parent.mkdir(parents=True, exist_ok=True)

engine = make_engine(SQLALCHEMY_DATABASE_URL)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for models
Base = declarative_base()


def get_db():
    """Dependency that provides a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Engine = None):
    """Initialize database tables."""
    from app.db import models  # noqa: F401 - Import models to register them
    Base.metadata.create_all(bind=bind or engine)
