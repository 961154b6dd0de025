"""
SQLAlchemy models for the onepost publication engine.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Text, DateTime, CheckConstraint, Index
from app.db.database import Base

DRAFT = "draft"
PUBLISHED = "published"
ARCHIVED = "archived"
POST_STATUSES = (DRAFT, PUBLISHED, ARCHIVED)

TITLE_MAX_LENGTH = 200

# Constraint names are matched when classifying IntegrityErrors
STATUS_CONSTRAINT = "check_post_status"
PUBLISHED_AT_CONSTRAINT = "check_post_published_at"


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def new_post_id() -> str:
    return str(uuid.uuid4())


class Post(Base):
    """
    A post owned by a single author.

    ``published_at`` is set if and only if ``status`` is ``published``;
    the check constraint below mirrors the rule enforced by the post store.
    """
    __tablename__ = "posts"

    id = Column(String(36), primary_key=True, default=new_post_id)
    author_id = Column(String(64), nullable=False, index=True)
    title = Column(String(TITLE_MAX_LENGTH), nullable=False)
    content = Column(Text, nullable=False, default="")
    excerpt = Column(String(200), nullable=False, default="")
    slug = Column(String(100), unique=True, nullable=False, index=True)
    status = Column(String(20), default=DRAFT, nullable=False)
    published_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint(
            "status IN ('draft', 'published', 'archived')",
            name=STATUS_CONSTRAINT
        ),
        CheckConstraint(
            "(status = 'published' AND published_at IS NOT NULL) OR "
            "(status <> 'published' AND published_at IS NULL)",
            name=PUBLISHED_AT_CONSTRAINT
        ),
        Index('idx_posts_status', 'status'),
        Index('idx_posts_created_at', 'created_at'),
        Index('idx_posts_author_status', 'author_id', 'status'),
    )

    @property
    def is_published(self) -> bool:
        return self.status == PUBLISHED

    def __repr__(self):
        return f"<Post {self.slug} ({self.status})>"
