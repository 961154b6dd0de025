"""Database package for the onepost publication engine."""

from app.db.database import get_db, init_db, make_engine, Base
from app.db.models import Post, DRAFT, PUBLISHED, ARCHIVED, POST_STATUSES

__all__ = [
    "get_db",
    "init_db",
    "make_engine",
    "Base",
    "Post",
    "DRAFT",
    "PUBLISHED",
    "ARCHIVED",
    "POST_STATUSES",
]
