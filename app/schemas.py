"""
Request and response models for the posts API.
"""

from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from app.services.feed import FeedPage

PostStatusField = Literal["draft", "published", "archived"]


class PostCreate(BaseModel):
    # published_at is computed server-side and rejected here
    model_config = ConfigDict(extra="forbid")

    title: str
    content: Optional[str] = None
    status: Optional[PostStatusField] = None


class PostUpdate(BaseModel):
    """Partial update; only fields present in the body are applied."""
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = None
    content: Optional[str] = None
    status: Optional[PostStatusField] = None

    def supplied(self) -> dict:
        return self.model_dump(exclude_unset=True)


class PostOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    author_id: str
    title: str
    content: str
    excerpt: str
    slug: str
    status: str
    published_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @field_validator("published_at", "created_at", "updated_at")
    @classmethod
    def as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # SQLite hands back naive values; they are stored as UTC
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


def post_response(post) -> dict:
    return {"post": PostOut.model_validate(post).model_dump(mode="json")}


def feed_response(feed: FeedPage) -> dict:
    return {
        "posts": [PostOut.model_validate(p).model_dump(mode="json") for p in feed.posts],
        "totalCount": feed.total_count,
        "hasMore": feed.has_more,
        "pagination": feed.pagination.to_dict(),
    }
