"""
Preference aggregation.

Turns a user's recent event log into a compact taste profile:

1. Read the last N searches, the last N interactions and the full wishlist
   (three independent queries, run concurrently).
2. Score category and color labels: each search filter occurrence adds the
   search weight, each interaction occurrence adds the interaction weight.
3. Keep the top-N labels of each accumulator, highest score first. Ties keep
   first-seen order.

If any of the three queries fails the whole profile is empty. A partial
profile would bias the feed on incomplete data, so no personalization is
preferred over some.
"""

import asyncio
from typing import Dict, Iterable, List, Optional

from core.logging import get_logger
from recs.config import RecommendationConfig
from recs.models import (
    InteractionRecord,
    SearchRecord,
    UserPreferenceProfile,
    WishlistRecord,
)
from recs.stores import EventLogStore, StoreError


logger = get_logger(__name__)


class ScoredSignal:
    """Label -> accumulated weight, remembering first-seen order for ties."""

    def __init__(self):
        self._scores: Dict[str, int] = {}

    def add(self, label: Optional[str], weight: int) -> None:
        if not label:
            return
        self._scores[label] = self._scores.get(label, 0) + weight

    def score(self, label: str) -> int:
        return self._scores.get(label, 0)

    def top(self, n: int) -> List[str]:
        # sorted() is stable and dicts keep insertion order
        ranked = sorted(self._scores.items(), key=lambda kv: kv[1], reverse=True)
        return [label for label, _ in ranked[:n]]

    def __len__(self) -> int:
        return len(self._scores)


def score_events(
    searches: Iterable[SearchRecord],
    interactions: Iterable[InteractionRecord],
    config: RecommendationConfig,
) -> tuple[ScoredSignal, ScoredSignal]:
    """Build the (category, color) accumulators from event records."""
    categories = ScoredSignal()
    colors = ScoredSignal()

    for search in searches:
        categories.add(search.filters.category, config.search_weight)
        colors.add(search.filters.color, config.search_weight)

    for interaction in interactions:
        data = interaction.interaction_data
        categories.add(data.category, config.interaction_weight)
        colors.add(data.color, config.interaction_weight)

    return categories, colors


def build_profile(
    searches: Iterable[SearchRecord],
    interactions: Iterable[InteractionRecord],
    wishlist: Iterable[WishlistRecord],
    config: Optional[RecommendationConfig] = None,
) -> UserPreferenceProfile:
    """Pure reduction of already-fetched records into a profile."""
    config = config or RecommendationConfig()
    categories, colors = score_events(searches, interactions, config)
    return UserPreferenceProfile(
        preferred_categories=categories.top(config.top_n),
        preferred_colors=colors.top(config.top_n),
        favorite_product_ids=frozenset(w.product_id for w in wishlist),
    )


class PreferenceAggregator:
    """Computes a :class:`UserPreferenceProfile` from the event log. No caching."""

    def __init__(self, events: EventLogStore, config: Optional[RecommendationConfig] = None):
        self._events = events
        self._config = config or RecommendationConfig()

    async def compute_profile(self, user_id: Optional[str]) -> UserPreferenceProfile:
        """
        Profile for ``user_id``; the empty profile for anonymous visitors or
        when any event-log query fails.
        """
        if not user_id:
            return UserPreferenceProfile.empty()

        limit = self._config.history_limit
        try:
            searches, interactions, wishlist = await asyncio.gather(
                self._events.query_search_history(user_id, limit),
                self._events.query_interaction_history(user_id, limit),
                self._events.query_wishlist(user_id),
            )
        except StoreError as e:
            logger.warning(
                "Preference query failed, using empty profile",
                user_id=user_id,
                source=e.source,
                error=e.message,
            )
            return UserPreferenceProfile.empty()

        searches, interactions = searches[:limit], interactions[:limit]
        profile = build_profile(searches, interactions, wishlist, self._config)
        logger.debug(
            "Preference profile computed",
            user_id=user_id,
            searches=len(searches),
            interactions=len(interactions),
            favorites=len(profile.favorite_product_ids),
            categories=profile.preferred_categories,
            colors=profile.preferred_colors,
        )
        return profile
