"""
FastAPI dependencies shared by the route modules.

Stores and the feed session registry live on ``app.state`` (set up by
``create_app``); routes receive them through ``Depends`` so tests can hand
the app in-memory stores instead of Supabase.
"""

from typing import Optional

from fastapi import Depends, Request

from config.database import get_supabase_client
from recs.config import RecommendationConfig
from recs.feed import RecommendationFeed
from recs.preferences import PreferenceAggregator
from recs.stores import (
    CatalogStore,
    EventLogStore,
    SupabaseCatalogStore,
    SupabaseEventLogStore,
)
from services.feed_sessions import FeedSessionManager


class StoreRegistry:
    """
    Holds the catalog and event-log stores for one app.

    Supabase-backed stores are built on first use, so the app starts (and
    answers /health and /live) even before Supabase is reachable.
    """

    def __init__(
        self,
        catalog: Optional[CatalogStore] = None,
        events: Optional[EventLogStore] = None,
    ):
        self._catalog = catalog
        self._events = events

    @property
    def catalog(self) -> CatalogStore:
        if self._catalog is None:
            self._catalog = SupabaseCatalogStore(get_supabase_client())
        return self._catalog

    @property
    def events(self) -> EventLogStore:
        if self._events is None:
            self._events = SupabaseEventLogStore(get_supabase_client())
        return self._events


def build_feed_factory(stores: StoreRegistry, config: RecommendationConfig):
    """Factory the session registry uses to open a new feed."""

    def create_feed() -> RecommendationFeed:
        aggregator = PreferenceAggregator(stores.events, config)
        return RecommendationFeed(stores.catalog, aggregator, config)

    return create_feed


def get_stores(request: Request) -> StoreRegistry:
    return request.app.state.stores


def get_recommendation_config(request: Request) -> RecommendationConfig:
    return request.app.state.recommendation_config


def get_feed_sessions(request: Request) -> FeedSessionManager:
    return request.app.state.feed_sessions


def get_event_store(stores: StoreRegistry = Depends(get_stores)) -> EventLogStore:
    return stores.events


def get_aggregator(
    stores: StoreRegistry = Depends(get_stores),
    config: RecommendationConfig = Depends(get_recommendation_config),
) -> PreferenceAggregator:
    return PreferenceAggregator(stores.events, config)
