"""
Paginated recommendation feed.

One feed exists per viewing session. States:

    IDLE --reset--> LOADING --> READY --load_more--> LOADING --> READY

``reset(user_id)`` discards everything and fetches page 1; it runs on first
use and whenever the driving user identifier changes (login, logout, switch).
``load_more()`` appends the next page of the same query.

Rules:
- Personalized sessions filter the catalog by the profile's preferred
  categories/colors and move wishlist favorites to the front of page 1 only.
- Anonymous sessions page the newest catalog items, unfiltered.
- The profile is resolved once per reset; ``load_more`` reuses its filters.
- ``has_more`` is true only while the last page came back full.
- ``total_count`` is the length of the last fetched page.
- Store failures are logged and leave an empty (reset) or unchanged
  (load_more) list with ``has_more`` false. Nothing is raised or retried.
- Each fetch carries the generation it started in; ``reset`` bumps the
  generation, so a response that arrives after an identifier change is dropped.
"""

from typing import Iterable, List, Optional

from core.logging import get_logger
from core.pagination import get_range
from recs.config import RecommendationConfig
from recs.models import (
    CatalogFilters,
    FeedStatus,
    Product,
    RecommendationPage,
    UserPreferenceProfile,
)
from recs.preferences import PreferenceAggregator
from recs.stores import CatalogStore, StoreError


logger = get_logger(__name__)


def favorites_first(items: Iterable[Product], favorite_ids: Iterable[str]) -> List[Product]:
    """Stable partition: favorites first, both groups keep catalog order."""
    favorites = set(favorite_ids)
    items = list(items)
    if not favorites:
        return items
    return (
        [p for p in items if p.id in favorites]
        + [p for p in items if p.id not in favorites]
    )


class RecommendationFeed:
    """Accumulated recommendation list plus its page cursor."""

    def __init__(
        self,
        catalog: CatalogStore,
        aggregator: PreferenceAggregator,
        config: Optional[RecommendationConfig] = None,
    ):
        self._catalog = catalog
        self._aggregator = aggregator
        self._config = config or RecommendationConfig()

        self._generation = 0
        self._user_id: Optional[str] = None
        self._status = FeedStatus.IDLE
        self._is_loading = False
        self._items: List[Product] = []
        self._page_index = 0
        self._has_more = False
        self._total_count = 0
        # Base query fixed by the last successful initial fetch
        self._filters: Optional[CatalogFilters] = None

    # =========================================================================
    # State
    # =========================================================================

    @property
    def user_id(self) -> Optional[str]:
        return self._user_id

    @property
    def status(self) -> FeedStatus:
        return self._status

    @property
    def current_items(self) -> List[Product]:
        return list(self._items)

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def has_more(self) -> bool:
        return self._has_more

    @property
    def total_count(self) -> int:
        return self._total_count

    @property
    def loaded_count(self) -> int:
        return len(self._items)

    @property
    def page_index(self) -> int:
        return self._page_index

    @property
    def page_size(self) -> int:
        return self._config.page_size

    def snapshot(self) -> RecommendationPage:
        return RecommendationPage(
            user_id=self._user_id,
            status=self._status,
            items=list(self._items),
            page_index=self._page_index,
            has_more=self._has_more,
            total_count=self._total_count,
            is_loading=self._is_loading,
        )

    # =========================================================================
    # Transitions
    # =========================================================================

    async def reset(self, user_id: Optional[str]) -> None:
        """Discard all state and fetch page 1 for ``user_id`` (None = anonymous)."""
        self._generation += 1
        generation = self._generation

        self._user_id = user_id or None
        self._items = []
        self._page_index = 0
        self._has_more = False
        self._total_count = 0
        self._filters = None
        self._start_loading()

        try:
            await self._fetch_initial(generation)
        finally:
            self._finish_loading(generation)

    async def load_more(self) -> bool:
        """
        Append the next page. Returns True if a page was appended.

        No-op while a fetch is in flight, after the last page, or before a
        successful initial fetch.
        """
        if self._is_loading or not self._has_more or self._filters is None:
            return False

        generation = self._generation
        self._start_loading()
        try:
            return await self._fetch_next(generation)
        finally:
            self._finish_loading(generation)

    # =========================================================================
    # Fetching
    # =========================================================================

    async def _fetch_initial(self, generation: int) -> None:
        if self._user_id:
            profile = await self._aggregator.compute_profile(self._user_id)
        else:
            profile = UserPreferenceProfile.empty()

        if self._is_stale(generation):
            return

        filters = profile.to_filters()
        try:
            page = await self._catalog.query_catalog(filters, get_range(1, self.page_size))
        except StoreError as e:
            if self._is_stale(generation):
                return
            logger.error(
                "Recommendation fetch failed",
                user_id=self._user_id,
                source=e.source,
                error=e.message,
                page=1,
            )
            self._items = []
            self._has_more = False
            return

        if self._is_stale(generation):
            return

        self._filters = filters
        self._items = favorites_first(page, profile.favorite_product_ids)
        self._page_index = 1
        self._record_page(page)
        logger.info(
            "Recommendations loaded",
            user_id=self._user_id,
            personalized=not profile.is_empty,
            categories=profile.preferred_categories,
            colors=profile.preferred_colors,
            count=len(page),
        )

    async def _fetch_next(self, generation: int) -> bool:
        next_page = self._page_index + 1
        try:
            page = await self._catalog.query_catalog(
                self._filters, get_range(next_page, self.page_size)
            )
        except StoreError as e:
            if self._is_stale(generation):
                return False
            logger.error(
                "Recommendation fetch failed",
                user_id=self._user_id,
                source=e.source,
                error=e.message,
                page=next_page,
            )
            self._has_more = False
            return False

        if self._is_stale(generation):
            return False

        # Favorites bias applies to the first page only
        self._items.extend(page)
        self._page_index = next_page
        self._record_page(page)
        logger.debug(
            "Recommendations appended",
            user_id=self._user_id,
            page=next_page,
            count=len(page),
        )
        return True

    # =========================================================================
    # Helpers
    # =========================================================================

    def _record_page(self, page: List[Product]) -> None:
        self._total_count = len(page)
        self._has_more = len(page) == self.page_size

    def _is_stale(self, generation: int) -> bool:
        if generation == self._generation:
            return False
        logger.debug(
            "Discarding stale recommendation response",
            user_id=self._user_id,
            generation=generation,
            current_generation=self._generation,
        )
        return True

    def _start_loading(self) -> None:
        self._is_loading = True
        self._status = FeedStatus.LOADING

    def _finish_loading(self, generation: int) -> None:
        if generation != self._generation:
            return
        self._is_loading = False
        self._status = FeedStatus.READY
