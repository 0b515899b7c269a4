"""
Personalized recommendation core.

- PreferenceAggregator: event log -> UserPreferenceProfile
- RecommendationFeed: profile-biased, paginated catalog feed
"""

from recs.config import RecommendationConfig
from recs.feed import RecommendationFeed, favorites_first
from recs.models import Product, RecommendationPage, UserPreferenceProfile
from recs.preferences import PreferenceAggregator, build_profile
from recs.stores import (
    CatalogStore,
    EventLogStore,
    StoreError,
    SupabaseCatalogStore,
    SupabaseEventLogStore,
)

__all__ = [
    "RecommendationConfig",
    "RecommendationFeed",
    "favorites_first",
    "Product",
    "RecommendationPage",
    "UserPreferenceProfile",
    "PreferenceAggregator",
    "build_profile",
    "CatalogStore",
    "EventLogStore",
    "StoreError",
    "SupabaseCatalogStore",
    "SupabaseEventLogStore",
]
