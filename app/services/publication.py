"""
Publication coordinator: keeps at most one published post per author.

Publishing archives the author's current published post(s) and then writes
the newly published one. Both steps are staged in the same session and
committed together, so readers never see the author with two published
posts, nor with none in between. Should the commit fail, nothing is
archived.
"""

import logging
from dataclasses import replace

from sqlalchemy.orm import Session

from app.db.models import Post, ARCHIVED, PUBLISHED, utcnow
from app.services.posts import (
    UNSET,
    PostChanges,
    apply_changes,
    build_post,
    get_post,
    save_post,
    set_status,
    store_errors,
    validate_content,
    validate_title,
)

logger = logging.getLogger(__name__)


def archive_published_posts(db: Session, author_id: str, exclude_id: str = None) -> list[Post]:
    """
    Stage every published post of an author as archived.

    Normally there is at most one, but concurrent publishers or old data can
    leave several; all of them are archived. Nothing is committed here.
    """
    query = db.query(Post).filter(
        Post.author_id == author_id,
        Post.status == PUBLISHED,
    )
    if exclude_id is not None:
        query = query.filter(Post.id != exclude_id)

    with store_errors(db, "fetch published posts"):
        posts = query.all()

    now = utcnow()
    for post in posts:
        set_status(post, ARCHIVED, now)

    if len(posts) > 1:
        logger.warning(
            "Author %s had %d published posts, archiving all of them",
            author_id, len(posts)
        )
    return posts


def publish_new(db: Session, author_id: str, title: str, content: str) -> Post:
    """Publish a new post for an author, archiving their previous one."""
    title = validate_title(title)
    content = validate_content(content)
    archived: list[Post] = []

    def stage() -> Post:
        archived[:] = archive_published_posts(db, author_id)
        post = build_post(author_id, title, content, PUBLISHED)
        db.add(post)
        return post

    post = save_post(db, stage)

    if archived:
        logger.info(
            "Archived post(s) %s for author %s in favour of %s",
            ", ".join(p.id for p in archived), author_id, post.id
        )
    logger.info("Published post %s for author %s", post.id, author_id)
    return post


def publish_existing(db: Session, post_id: str, changes: PostChanges = None) -> Post:
    """
    Move an existing draft or archived post into 'published'.

    Title/content edits in ``changes`` are applied in the same commit as the
    transition, and so is archiving the author's other published posts.
    Publishing an already published post refreshes its published_at.
    """
    edits = replace(changes, status=UNSET) if changes is not None else None
    archived: list[Post] = []

    def stage() -> Post:
        post = get_post(db, post_id)
        if edits is not None:
            apply_changes(post, edits)
        archived[:] = archive_published_posts(db, post.author_id, exclude_id=post.id)
        set_status(post, PUBLISHED)
        return post

    post = save_post(db, stage)

    if archived:
        logger.info(
            "Archived post(s) %s for author %s in favour of %s",
            ", ".join(p.id for p in archived), post.author_id, post.id
        )
    logger.info("Published existing post %s", post.id)
    return post
