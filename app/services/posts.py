"""
Post store for the onepost publication engine.
Create, update and read operations on posts.

Every write path recomputes ``published_at`` from the status transition and
checks the status/published_at invariant before committing; callers can
never supply ``published_at`` themselves.
"""

import logging
from collections.abc import Mapping
from contextlib import contextmanager
from dataclasses import dataclass, fields
from typing import Any, Callable, Iterator, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.db.models import (
    Post,
    DRAFT,
    PUBLISHED,
    POST_STATUSES,
    TITLE_MAX_LENGTH,
    PUBLISHED_AT_CONSTRAINT,
    STATUS_CONSTRAINT,
    utcnow,
)
from app.services.errors import (
    ConflictError,
    FetchError,
    InvariantViolationError,
    NotFoundError,
    PostError,
    ValidationError,
)
from app.services.text import generate_excerpt, generate_slug

logger = logging.getLogger(__name__)

# First attempt plus one regeneration after a slug collision
SAVE_ATTEMPTS = 2

# SQLite reports the column, Postgres the index name
SLUG_INDEX = "ix_posts_slug"
SLUG_CONFLICT_MARKERS = ("posts.slug", f'"{SLUG_INDEX}"')


class _Unset:
    """Marker for a field that was not supplied at all."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self):
        return False

    def __repr__(self):
        return "UNSET"


UNSET: Any = _Unset()


@dataclass
class PostChanges:
    """Sparse set of changes for ``update_post``.

    A field left as ``UNSET`` is not touched. A field explicitly set to
    ``None`` is a request to clear it, which no post field allows.
    """
    title: Any = UNSET
    content: Any = UNSET
    status: Any = UNSET

    @classmethod
    def from_mapping(cls, data: Mapping) -> "PostChanges":
        allowed = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - allowed)
        if unknown:
            raise ValidationError(
                f"Unknown or read-only field(s): {', '.join(unknown)}",
                field=unknown[0],
            )
        return cls(**dict(data))

    def supplied(self, name: str) -> bool:
        return getattr(self, name) is not UNSET

    @property
    def is_empty(self) -> bool:
        return not any(self.supplied(f.name) for f in fields(self))


# =============================================================================
# VALIDATION
# =============================================================================

def validate_title(title: Any) -> str:
    if title is None or not isinstance(title, str) or not title.strip():
        raise ValidationError("Title is required", field="title")
    title = title.strip()
    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError(
            f"Title must be at most {TITLE_MAX_LENGTH} characters", field="title"
        )
    return title


def validate_content(content: Any) -> str:
    # Empty content is a valid body, a missing one is not
    if content is None:
        raise ValidationError("Content is required", field="content")
    if not isinstance(content, str):
        raise ValidationError("Content must be a string", field="content")
    return content


def validate_status(status: Any) -> str:
    if status not in POST_STATUSES:
        raise ValidationError(
            f"Status must be one of: {', '.join(POST_STATUSES)}", field="status"
        )
    return status


def check_invariant(post: Post) -> None:
    """Reject a post whose published_at disagrees with its status."""
    if (post.status == PUBLISHED) != (post.published_at is not None):
        raise InvariantViolationError(
            f"Post {post.id or '<new>'} has status '{post.status}' with "
            f"published_at={post.published_at!r}; published_at must be set "
            "if and only if the post is published"
        )


def set_status(post: Post, status: str, now=None) -> None:
    """Apply a status transition, recomputing published_at."""
    now = now or utcnow()
    post.status = status
    # Entering 'published' always refreshes the timestamp, even on re-publish
    post.published_at = now if status == PUBLISHED else None
    post.updated_at = now


# =============================================================================
# STORE PLUMBING
# =============================================================================

@contextmanager
def store_errors(db: Session, action: str) -> Iterator[None]:
    """Turn unexpected store failures into FetchError."""
    try:
        yield
    except SQLAlchemyError as exc:
        db.rollback()
        raise FetchError(f"Failed to {action}") from exc


def _is_slug_conflict(exc: IntegrityError) -> bool:
    """True only for a violation of the slug unique index."""
    constraint = getattr(getattr(exc.orig, "diag", None), "constraint_name", None)
    if constraint:
        return constraint == SLUG_INDEX

    # Only the first line names the constraint; later lines may echo row data
    lines = str(exc.orig).splitlines()
    headline = lines[0] if lines else ""
    return any(marker in headline for marker in SLUG_CONFLICT_MARKERS)


def _integrity_error(exc: IntegrityError) -> PostError:
    message = str(exc.orig)
    if PUBLISHED_AT_CONSTRAINT in message:
        return InvariantViolationError(
            "Store rejected the post: published_at must be set if and only if "
            "the post is published"
        )
    if STATUS_CONSTRAINT in message:
        return ValidationError("Store rejected the post status", field="status")
    return FetchError("Store rejected the write")


def save_post(db: Session, stage: Callable[[], Post]) -> Post:
    """
    Commit the rows staged by ``stage`` and return the refreshed post.

    ``stage`` is called once per attempt inside a fresh transaction. If the
    commit fails on the slug unique constraint the transaction is rolled
    back and ``stage`` runs one more time, which regenerates the slug. A
    second collision is a ConflictError.
    """
    for attempt in range(1, SAVE_ATTEMPTS + 1):
        try:
            post = stage()
            check_invariant(post)
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            if not _is_slug_conflict(exc):
                raise _integrity_error(exc) from exc
            if attempt == SAVE_ATTEMPTS:
                raise ConflictError("Could not generate a unique slug for this post") from exc
            logger.warning("Slug collision on %s, retrying with a new slug", post.slug)
            continue
        except PostError:
            db.rollback()
            raise
        except SQLAlchemyError as exc:
            db.rollback()
            raise FetchError("Failed to save post") from exc

        with store_errors(db, "load saved post"):
            db.refresh(post)
        return post


def build_post(
    author_id: str,
    title: str,
    content: str,
    status: str = DRAFT,
) -> Post:
    """Create an unsaved post with derived fields filled in."""
    now = utcnow()
    return Post(
        author_id=author_id,
        title=title,
        content=content,
        slug=generate_slug(title),
        excerpt=generate_excerpt(content),
        status=status,
        published_at=now if status == PUBLISHED else None,
        created_at=now,
        updated_at=now,
    )


# =============================================================================
# READ OPERATIONS
# =============================================================================

def find_post(db: Session, post_id: str) -> Optional[Post]:
    """Get a post by ID, or None."""
    with store_errors(db, "fetch post"):
        return db.query(Post).filter(Post.id == post_id).first()


def get_post(db: Session, post_id: str) -> Post:
    """Get a post by ID, raising NotFoundError if it does not exist."""
    post = find_post(db, post_id)
    if post is None:
        raise NotFoundError(f"Post {post_id} not found")
    return post


def get_post_by_slug(db: Session, slug: str) -> Optional[Post]:
    """Get a post by slug."""
    with store_errors(db, "fetch post"):
        return db.query(Post).filter(Post.slug == slug).first()


def get_author_post(db: Session, author_id: str, status: str) -> Optional[Post]:
    """
    Get the author's newest post in the given status.

    Used to find an author's current published post. Concurrent publishers
    can leave more than one published post behind; the newest wins here and
    the next publish archives the rest.
    """
    validate_status(status)
    with store_errors(db, "fetch author post"):
        posts = (
            db.query(Post)
            .filter(Post.author_id == author_id, Post.status == status)
            .order_by(Post.created_at.desc())
            .limit(2)
            .all()
        )

    if len(posts) > 1 and status == PUBLISHED:
        logger.warning("Author %s has more than one published post", author_id)

    return posts[0] if posts else None


def list_author_posts(
    db: Session,
    author_id: str,
    status: Optional[str] = None,
) -> list[Post]:
    """All posts of an author, archived included, newest first."""
    if status:
        validate_status(status)

    with store_errors(db, "list author posts"):
        query = db.query(Post).filter(Post.author_id == author_id)
        if status:
            query = query.filter(Post.status == status)
        return query.order_by(Post.created_at.desc()).all()


# =============================================================================
# WRITE OPERATIONS
# =============================================================================

def create_post(
    db: Session,
    author_id: str,
    title: str,
    content: str,
    status: Optional[str] = None,
) -> Post:
    """Create a new post, a draft unless another status is requested."""
    title = validate_title(title)
    content = validate_content(content)
    status = validate_status(status or DRAFT)

    def stage() -> Post:
        post = build_post(author_id, title, content, status)
        db.add(post)
        return post

    post = save_post(db, stage)
    logger.info("Created post %s (%s) for author %s", post.id, post.status, author_id)
    return post


def apply_changes(post: Post, changes: PostChanges) -> Post:
    """Apply a validated partial update to a post in memory."""
    now = utcnow()

    if changes.supplied("title"):
        post.title = validate_title(changes.title)
        post.slug = generate_slug(post.title)
    if changes.supplied("content"):
        post.content = validate_content(changes.content)
        post.excerpt = generate_excerpt(post.content)
    if changes.supplied("status"):
        set_status(post, validate_status(changes.status), now)

    # published_at is left alone unless status was supplied
    post.updated_at = now
    return post


def update_post(db: Session, post_id: str, changes) -> Post:
    """Update only the supplied fields of an existing post."""
    if isinstance(changes, Mapping):
        changes = PostChanges.from_mapping(changes)

    # Validate up front so bad input never costs a query
    if changes.supplied("title"):
        validate_title(changes.title)
    if changes.supplied("content"):
        validate_content(changes.content)
    if changes.supplied("status"):
        validate_status(changes.status)

    def stage() -> Post:
        return apply_changes(get_post(db, post_id), changes)

    post = save_post(db, stage)
    logger.info("Updated post %s (%s)", post.id, post.status)
    return post


def delete_post(db: Session, post_id: str) -> None:
    """Permanently delete a post."""
    post = get_post(db, post_id)

    with store_errors(db, "delete post"):
        db.delete(post)
        db.commit()

    logger.info("Deleted post %s", post_id)
