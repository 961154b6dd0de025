"""
Pytest configuration and fixtures.
"""
import itertools
import os
from datetime import datetime, timedelta, timezone

# Must be set before the app modules read their configuration
os.environ.setdefault("ONEPOST_DATABASE_URL", "sqlite://")
os.environ.setdefault("ONEPOST_SECRET_KEY", "test-secret-key")
os.environ.setdefault("ONEPOST_RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.database import Base, get_db, make_engine
from app.db.models import Post, PUBLISHED
from app.main import app
from app.security.sessions import create_session_token
from app.services.text import generate_excerpt

BASE_TIME = datetime(2025, 6, 29, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def engine():
    """Fresh in-memory database per test."""
    engine = make_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    """API client backed by the test database."""
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    """Build bearer headers for an author id."""
    def make(author_id: str) -> dict:
        return {"Authorization": f"Bearer {create_session_token(author_id)}"}
    return make


@pytest.fixture
def post_factory(db):
    """Insert posts directly, with explicit creation times.

    ``minutes_ago`` is relative to BASE_TIME, so larger means older.
    """
    counter = itertools.count(1)

    def make(
        author_id: str = "author-a",
        status: str = PUBLISHED,
        minutes_ago: int = 0,
        title: str = None,
        content: str = "Some body text",
        slug: str = None,
    ) -> Post:
        n = next(counter)
        created_at = BASE_TIME - timedelta(minutes=minutes_ago)
        post = Post(
            author_id=author_id,
            title=title or f"Post {n}",
            content=content,
            excerpt=generate_excerpt(content),
            slug=slug or f"post-{n}",
            status=status,
            published_at=created_at if status == PUBLISHED else None,
            created_at=created_at,
            updated_at=created_at,
        )
        db.add(post)
        db.commit()
        db.refresh(post)
        return post

    return make
