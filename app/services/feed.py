"""
Public feed queries.

Both feeds list published posts newest first by ``created_at``. The
deduplicated feed keeps only each author's most recent published post.
"""

from dataclasses import dataclass
from typing import Any

from sqlalchemy import distinct, func, select
from sqlalchemy.orm import Session

from app.db.models import Post, PUBLISHED
from app.services.pagination import Pagination, coerce_page_params, paginate
from app.services.posts import store_errors


@dataclass
class FeedPage:
    posts: list[Post]
    total_count: int
    has_more: bool
    pagination: Pagination


def list_published(db: Session, page: Any = 1, limit: Any = 20) -> FeedPage:
    """All published posts, newest first."""
    page, limit = coerce_page_params(page, limit)

    with store_errors(db, "fetch posts"):
        query = db.query(Post).filter(Post.status == PUBLISHED)
        total = query.count()
        pagination = paginate(page, limit, total)
        posts = (
            query.order_by(Post.created_at.desc())
            .offset(pagination.offset)
            .limit(limit)
            .all()
        )

    return FeedPage(posts, total, pagination.has_next, pagination)


def list_latest_per_author(db: Session, page: Any = 1, limit: Any = 20) -> FeedPage:
    """
    The newest published post of every author, newest first.

    ``total_count`` is the number of authors with a published post.
    """
    page, limit = coerce_page_params(page, limit)

    ranked = (
        select(
            Post.id.label("id"),
            func.row_number().over(
                partition_by=Post.author_id,
                order_by=Post.created_at.desc(),
            ).label("position"),
        )
        .where(Post.status == PUBLISHED)
        .subquery()
    )

    with store_errors(db, "fetch feed"):
        total = (
            db.query(func.count(distinct(Post.author_id)))
            .filter(Post.status == PUBLISHED)
            .scalar()
        ) or 0
        pagination = paginate(page, limit, total)
        posts = (
            db.query(Post)
            .join(ranked, Post.id == ranked.c.id)
            .filter(ranked.c.position == 1)
            .order_by(Post.created_at.desc())
            .offset(pagination.offset)
            .limit(limit)
            .all()
        )

    return FeedPage(posts, total, pagination.has_next, pagination)
