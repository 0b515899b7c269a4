"""
Tests for the feed session registry.
"""

from datetime import datetime, timedelta

import pytest

from recs.feed import RecommendationFeed
from recs.models import FeedStatus, WishlistRecord
from recs.preferences import PreferenceAggregator
from services.feed_sessions import FeedSessionManager


@pytest.fixture
def sessions(catalog_store, event_store, make_product):
    catalog_store.products = [make_product(f"p{i}", age=i) for i in range(6)]

    def factory() -> RecommendationFeed:
        return RecommendationFeed(catalog_store, PreferenceAggregator(event_store))

    return FeedSessionManager(factory, ttl_seconds=60)


class TestFeedSessionManager:

    def test_get_or_create(self, sessions):
        session, created = sessions.get_or_create("s1")
        again, created_again = sessions.get_or_create("s1")

        assert created is True
        assert created_again is False
        assert again is session
        assert session.feed.status == FeedStatus.IDLE

    def test_unknown_session(self, sessions):
        assert sessions.get("missing") is None

    async def test_resolve_runs_initial_fetch(self, sessions):
        session = await sessions.resolve("s1", None)

        assert session.feed.status == FeedStatus.READY
        assert session.feed.page_index == 1
        assert session.feed.loaded_count == 4

    async def test_resolve_same_user_keeps_cursor(self, sessions, catalog_store):
        session = await sessions.resolve("s1", "u1")
        await session.feed.load_more()

        again = await sessions.resolve("s1", "u1")

        assert again.feed.page_index == 2
        assert len(catalog_store.calls) == 2

    async def test_resolve_new_user_resets(self, sessions, event_store):
        event_store.wishlists["u2"] = [WishlistRecord(product_id="p3")]
        session = await sessions.resolve("s1", "u1")
        await session.feed.load_more()

        switched = await sessions.resolve("s1", "u2")

        assert switched.feed.user_id == "u2"
        assert switched.feed.page_index == 1
        assert [p.id for p in switched.feed.current_items] == ["p3", "p0", "p1", "p2"]

    async def test_login_from_anonymous_resets(self, sessions):
        await sessions.resolve("s1", None)

        session = await sessions.resolve("s1", "u1")

        assert session.feed.user_id == "u1"

    async def test_sessions_are_independent(self, sessions):
        a = await sessions.resolve("a", None)
        b = await sessions.resolve("b", None)
        await a.feed.load_more()

        assert a.feed.page_index == 2
        assert b.feed.page_index == 1

    def test_delete(self, sessions):
        sessions.get_or_create("s1")

        assert sessions.delete("s1") is True
        assert sessions.delete("s1") is False
        assert sessions.get("s1") is None

    def test_expired_sessions_are_dropped(self, sessions):
        session, _ = sessions.get_or_create("s1")
        session.last_used_at = datetime.utcnow() - timedelta(seconds=120)

        assert sessions.get("s1") is None

    def test_creating_a_session_sweeps_expired_ones(self, sessions):
        for i in range(100):
            stale, _ = sessions.get_or_create(f"tab-{i}")
            stale.last_used_at = datetime.utcnow() - timedelta(seconds=120)
        live, _ = sessions.get_or_create("live")

        sessions.get_or_create("fresh")

        assert sessions.get_stats()["sessions"] == 2
        assert sessions.get("live") is live

    def test_clear_expired(self, sessions):
        old, _ = sessions.get_or_create("old")
        sessions.get_or_create("fresh")
        old.last_used_at = datetime.utcnow() - timedelta(seconds=120)

        assert sessions.clear_expired() == 1
        assert sessions.get_stats() == {"sessions": 1, "loading": 0}
