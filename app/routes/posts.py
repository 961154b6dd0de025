"""
JSON API routes for posts and feeds.
"""

from typing import Optional

from fastapi import APIRouter, Request, Depends
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.db.database import get_db
from app.db.models import PUBLISHED
from app.schemas import PostCreate, PostUpdate, post_response, feed_response
from app.security.rate_limit import limiter, WRITE_RATE_LIMIT
from app.security.sessions import get_current_author, get_optional_author
from app.services import feed as feed_service
from app.services import posts as posts_service
from app.services import publication
from app.services.errors import NotFoundError, ValidationError
from app.services.pagination import MAX_PAGE_SIZE, coerce_page_params

router = APIRouter(prefix="/api", tags=["posts"])


def page_params(page: Optional[str] = None, limit: Optional[str] = None) -> tuple[int, int]:
    """Query string page/limit, validated before any query runs.

    An empty value (``?page=``) counts as not supplied.
    """
    page, limit = coerce_page_params(page or None, limit or None)
    if limit > MAX_PAGE_SIZE:
        raise ValidationError(f"Limit must be at most {MAX_PAGE_SIZE}", field="limit")
    return page, limit


def get_owned_post(db: Session, post_id: str, author_id: str):
    """Fetch a post the caller owns; other authors' posts look missing."""
    post = posts_service.get_post(db, post_id)
    if post.author_id != author_id:
        raise NotFoundError(f"Post {post_id} not found")
    return post


# =============================================================================
# FEEDS
# =============================================================================

@router.get("/posts")
async def list_posts(
    params: tuple[int, int] = Depends(page_params),
    db: Session = Depends(get_db)
):
    """Published posts, newest first."""
    page, limit = params
    return feed_response(feed_service.list_published(db, page, limit))


@router.get("/feed")
async def latest_per_author_feed(
    params: tuple[int, int] = Depends(page_params),
    db: Session = Depends(get_db)
):
    """Home feed - the latest published post of each author."""
    page, limit = params
    return feed_response(feed_service.list_latest_per_author(db, page, limit))


# =============================================================================
# READS
# =============================================================================

@router.get("/posts/slug/{slug}")
async def post_by_slug(slug: str, db: Session = Depends(get_db)):
    """Single published post by slug."""
    post = posts_service.get_post_by_slug(db, slug)
    if not post or post.status != PUBLISHED:
        raise NotFoundError("Post not found")
    return post_response(post)


@router.get("/posts/{post_id}")
async def get_post(
    post_id: str,
    author_id: Optional[str] = Depends(get_optional_author),
    db: Session = Depends(get_db)
):
    """Published posts are public; drafts and archives only to their author."""
    post = posts_service.get_post(db, post_id)
    if post.status != PUBLISHED and post.author_id != author_id:
        raise NotFoundError(f"Post {post_id} not found")
    return post_response(post)


@router.get("/authors/{author_id}/post")
async def author_current_post(author_id: str, db: Session = Depends(get_db)):
    """The author's current published post."""
    post = posts_service.get_author_post(db, author_id, PUBLISHED)
    if post is None:
        raise NotFoundError("No active post found for this author")
    return post_response(post)


@router.get("/me/posts")
async def my_posts(
    status: Optional[str] = None,
    author_id: str = Depends(get_current_author),
    db: Session = Depends(get_db)
):
    """The caller's own posts, archived included, newest first."""
    posts = posts_service.list_author_posts(db, author_id, status=status)
    return {"posts": [post_response(p)["post"] for p in posts]}


# =============================================================================
# WRITES
# =============================================================================

@router.post("/posts", status_code=201)
@limiter.limit(WRITE_RATE_LIMIT)
async def create_post(
    request: Request,
    body: PostCreate,
    author_id: str = Depends(get_current_author),
    db: Session = Depends(get_db)
):
    """Create a post. Publishing replaces the author's current post."""
    if body.status == PUBLISHED:
        post = publication.publish_new(db, author_id, body.title, body.content)
    else:
        post = posts_service.create_post(
            db, author_id, body.title, body.content, status=body.status
        )
    return post_response(post)


@router.patch("/posts/{post_id}")
@limiter.limit(WRITE_RATE_LIMIT)
async def update_post(
    request: Request,
    post_id: str,
    body: PostUpdate,
    author_id: str = Depends(get_current_author),
    db: Session = Depends(get_db)
):
    """Update the supplied fields of one of the caller's posts."""
    get_owned_post(db, post_id, author_id)
    changes = posts_service.PostChanges.from_mapping(body.supplied())

    if changes.status == PUBLISHED:
        post = publication.publish_existing(db, post_id, changes)
    else:
        post = posts_service.update_post(db, post_id, changes)
    return post_response(post)


@router.delete("/posts/{post_id}", status_code=204)
@limiter.limit(WRITE_RATE_LIMIT)
async def delete_post(
    request: Request,
    post_id: str,
    author_id: str = Depends(get_current_author),
    db: Session = Depends(get_db)
):
    """Delete one of the caller's posts."""
    get_owned_post(db, post_id, author_id)
    posts_service.delete_post(db, post_id)
    return Response(status_code=204)
