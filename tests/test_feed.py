"""
Feed projector tests: raw and per-author feeds with pagination.
"""
import pytest
from sqlalchemy.exc import OperationalError

from app.db.models import ARCHIVED, DRAFT
from app.services import feed as feed_service
from app.services.errors import FetchError, ValidationError


class TestListPublished:

    def test_only_published_newest_first(self, db, post_factory):
        old = post_factory(author_id="author-a", minutes_ago=30)
        new = post_factory(author_id="author-b", minutes_ago=5)
        post_factory(author_id="author-c", status=DRAFT)
        post_factory(author_id="author-d", status=ARCHIVED)

        feed = feed_service.list_published(db, 1, 20)

        assert [p.id for p in feed.posts] == [new.id, old.id]
        assert feed.total_count == 2
        assert feed.has_more is False

    def test_includes_every_post_of_an_author(self, db, post_factory):
        post_factory(author_id="author-a", minutes_ago=10)
        post_factory(author_id="author-a", minutes_ago=5)

        assert feed_service.list_published(db).total_count == 2

    def test_pages(self, db, post_factory):
        posts = [post_factory(author_id=f"author-{i}", minutes_ago=i) for i in range(25)]

        first = feed_service.list_published(db, 1, 10)
        last = feed_service.list_published(db, 3, 10)

        assert [p.id for p in first.posts] == [p.id for p in posts[:10]]
        assert first.has_more is True
        assert first.pagination.total_pages == 3
        assert len(last.posts) == 5
        assert last.has_more is False
        assert last.pagination.has_prev is True

    def test_empty(self, db):
        feed = feed_service.list_published(db)
        assert feed.posts == []
        assert feed.total_count == 0
        assert feed.pagination.total_pages == 0
        assert feed.has_more is False

    def test_orders_by_created_at_not_published_at(self, db, post_factory):
        older = post_factory(author_id="author-a", minutes_ago=60)
        newer = post_factory(author_id="author-b", minutes_ago=10)
        # Re-published long after creation
        older.published_at = newer.published_at.replace(year=newer.published_at.year + 1)
        db.commit()

        feed = feed_service.list_published(db)
        assert [p.id for p in feed.posts] == [newer.id, older.id]


class TestListLatestPerAuthor:

    def test_one_post_per_author(self, db, post_factory):
        a_old = post_factory(author_id="author-a", minutes_ago=60)
        a_new = post_factory(author_id="author-a", minutes_ago=0)
        b = post_factory(author_id="author-b", minutes_ago=30)

        feed = feed_service.list_latest_per_author(db, 1, 20)

        ids = [p.id for p in feed.posts]
        assert ids == [a_new.id, b.id]
        assert a_old.id not in ids
        assert feed.total_count == 2

    def test_total_counts_authors_not_rows(self, db, post_factory):
        for minutes in (5, 10, 15):
            post_factory(author_id="author-a", minutes_ago=minutes)
        post_factory(author_id="author-b", minutes_ago=20)
        post_factory(author_id="author-c", status=DRAFT)

        feed = feed_service.list_latest_per_author(db, 1, 1)

        assert feed.total_count == 2
        assert feed.pagination.total_pages == 2
        assert feed.has_more is True
        assert len(feed.posts) == 1

    def test_drafts_do_not_hide_published_post(self, db, post_factory):
        published = post_factory(author_id="author-a", minutes_ago=30)
        post_factory(author_id="author-a", status=DRAFT, minutes_ago=1)

        feed = feed_service.list_latest_per_author(db)
        assert [p.id for p in feed.posts] == [published.id]

    def test_pages_over_authors(self, db, post_factory):
        latest = []
        for i in range(5):
            post_factory(author_id=f"author-{i}", minutes_ago=100 + i)
            latest.append(post_factory(author_id=f"author-{i}", minutes_ago=i))

        second = feed_service.list_latest_per_author(db, 2, 2)

        assert [p.id for p in second.posts] == [latest[2].id, latest[3].id]
        assert second.total_count == 5
        assert second.pagination.offset == 2
        assert second.has_more is True


class TestFeedErrors:

    @pytest.mark.parametrize("page,limit", [(0, 10), (1, 0), ("abc", 10), (1, "x")])
    def test_invalid_params_rejected(self, db, page, limit):
        with pytest.raises(ValidationError):
            feed_service.list_published(db, page, limit)
        with pytest.raises(ValidationError):
            feed_service.list_latest_per_author(db, page, limit)

    def test_store_failure_is_fetch_error(self, db, monkeypatch):
        def broken(*args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("database is locked"))

        monkeypatch.setattr(db, "query", broken)

        with pytest.raises(FetchError):
            feed_service.list_published(db)
        with pytest.raises(FetchError):
            feed_service.list_latest_per_author(db)
