"""
Store adapters for the catalog and the user event log.

The recommendation core only talks to the two protocols below. The Supabase
implementations translate them into PostgREST queries:

- products:           catalog, filtered by category/color, newest first, offset paged
- user_searches:      search history (``search_filters`` JSON payload)
- user_interactions:  product interactions (``interaction_data`` JSON payload)
- wishlist:           saved products

The supabase client is synchronous, so each query runs in a worker thread to
keep the event loop free while several profile queries are in flight.
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional, Protocol

from pydantic import ValidationError
from supabase import Client

from core.logging import get_logger
from core.pagination import PageRange
from recs.models import (
    CatalogFilters,
    FavoriteType,
    InteractionRecord,
    InteractionType,
    Product,
    SearchMode,
    SearchRecord,
    WishlistRecord,
)


logger = get_logger(__name__)


PRODUCTS_TABLE = "products"
SEARCHES_TABLE = "user_searches"
INTERACTIONS_TABLE = "user_interactions"
WISHLIST_TABLE = "wishlist"


class StoreError(Exception):
    """A catalog or event-log query failed (transport, permission, bad rows)."""

    def __init__(self, source: str, message: str):
        super().__init__(f"{source}: {message}")
        self.source = source
        self.message = message


# =============================================================================
# Protocols
# =============================================================================

class CatalogStore(Protocol):
    async def query_catalog(
        self, filters: CatalogFilters, page_range: PageRange
    ) -> List[Product]:
        """Products matching ``filters``, newest first, rows ``page_range``."""
        ...


class EventLogStore(Protocol):
    async def query_search_history(self, user_id: str, limit: int) -> List[SearchRecord]:
        ...

    async def query_interaction_history(
        self, user_id: str, limit: int
    ) -> List[InteractionRecord]:
        ...

    async def query_wishlist(self, user_id: str) -> List[WishlistRecord]:
        ...

    async def list_searches(self, user_id: str, page_range: PageRange) -> List[SearchRecord]:
        """One page of the user's search history, newest first."""
        ...

    async def record_search(
        self,
        user_id: str,
        search_query: str,
        search_filters: Dict[str, Any],
        search_mode: SearchMode,
    ) -> None:
        ...

    async def record_interaction(
        self,
        user_id: str,
        product_id: str,
        interaction_type: InteractionType,
        interaction_data: Optional[Dict[str, Any]] = None,
    ) -> None:
        ...

    async def add_to_wishlist(
        self, user_id: str, product_id: str, favorite_type: FavoriteType
    ) -> None:
        ...

    async def remove_from_wishlist(self, user_id: str, product_id: str) -> None:
        ...

    async def list_wishlist(self, user_id: str) -> List[WishlistRecord]:
        ...


# =============================================================================
# Supabase implementations
# =============================================================================

async def _execute(source: str, build: Callable[[], Any]) -> List[Dict[str, Any]]:
    """Run a query builder off the event loop; any failure becomes StoreError."""
    try:
        response = await asyncio.to_thread(lambda: build().execute())
    except Exception as e:
        raise StoreError(source, str(e) or type(e).__name__) from e
    return response.data or []


def _parse(source: str, rows: List[Dict[str, Any]], parser: Callable[[Dict[str, Any]], Any]) -> list:
    """Parse rows; a parser returning None skips that row."""
    try:
        parsed = [parser(row) for row in rows]
    except (ValidationError, KeyError, TypeError) as e:
        raise StoreError(source, f"malformed row: {e}") from e
    return [item for item in parsed if item is not None]


class SupabaseCatalogStore:
    """Catalog reads against the ``products`` table."""

    def __init__(self, supabase: Client):
        self._supabase = supabase

    async def query_catalog(
        self, filters: CatalogFilters, page_range: PageRange
    ) -> List[Product]:
        def build():
            query = self._supabase.table(PRODUCTS_TABLE).select("*")
            if filters.category_in:
                query = query.in_("category", filters.category_in)
            if filters.color_in:
                query = query.in_("color", filters.color_in)
            return query.order("created_at", desc=True).range(page_range.from_, page_range.to)

        rows = await _execute(PRODUCTS_TABLE, build)
        return _parse(PRODUCTS_TABLE, rows, Product.model_validate)


class SupabaseEventLogStore:
    """Search history, interaction history and wishlist for one Supabase project."""

    def __init__(self, supabase: Client):
        self._supabase = supabase

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def query_search_history(self, user_id: str, limit: int) -> List[SearchRecord]:
        rows = await _execute(
            SEARCHES_TABLE,
            lambda: self._supabase.table(SEARCHES_TABLE)
            .select("search_filters, created_at")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .limit(limit),
        )
        return _parse(SEARCHES_TABLE, rows, SearchRecord.from_row)

    async def query_interaction_history(
        self, user_id: str, limit: int
    ) -> List[InteractionRecord]:
        rows = await _execute(
            INTERACTIONS_TABLE,
            lambda: self._supabase.table(INTERACTIONS_TABLE)
            .select("interaction_data, product_id, created_at")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .limit(limit),
        )
        return _parse(INTERACTIONS_TABLE, rows, InteractionRecord.from_row)

    async def query_wishlist(self, user_id: str) -> List[WishlistRecord]:
        rows = await _execute(
            WISHLIST_TABLE,
            lambda: self._supabase.table(WISHLIST_TABLE)
            .select("product_id")
            .eq("user_id", user_id),
        )
        return _parse(WISHLIST_TABLE, rows, WishlistRecord.from_row)

    async def list_searches(self, user_id: str, page_range: PageRange) -> List[SearchRecord]:
        rows = await _execute(
            SEARCHES_TABLE,
            lambda: self._supabase.table(SEARCHES_TABLE)
            .select("search_query, search_filters, search_mode, created_at")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .range(page_range.from_, page_range.to),
        )
        return _parse(SEARCHES_TABLE, rows, SearchRecord.from_row)

    async def list_wishlist(self, user_id: str) -> List[WishlistRecord]:
        rows = await _execute(
            WISHLIST_TABLE,
            lambda: self._supabase.table(WISHLIST_TABLE)
            .select("product_id, favorite_type, added_at")
            .eq("user_id", user_id)
            .order("added_at", desc=True),
        )
        return _parse(WISHLIST_TABLE, rows, WishlistRecord.from_row)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def record_search(
        self,
        user_id: str,
        search_query: str,
        search_filters: Dict[str, Any],
        search_mode: SearchMode,
    ) -> None:
        row = {
            "user_id": user_id,
            "search_query": search_query,
            "search_filters": search_filters or {},
            "search_mode": SearchMode(search_mode).value,
        }
        await _execute(SEARCHES_TABLE, lambda: self._supabase.table(SEARCHES_TABLE).insert(row))
        logger.debug("Search recorded", user_id=user_id, search_mode=row["search_mode"])

    async def record_interaction(
        self,
        user_id: str,
        product_id: str,
        interaction_type: InteractionType,
        interaction_data: Optional[Dict[str, Any]] = None,
    ) -> None:
        row = {
            "user_id": user_id,
            "product_id": product_id,
            "interaction_type": InteractionType(interaction_type).value,
            "interaction_data": interaction_data or {},
        }
        await _execute(
            INTERACTIONS_TABLE, lambda: self._supabase.table(INTERACTIONS_TABLE).insert(row)
        )
        logger.debug(
            "Interaction recorded",
            user_id=user_id,
            product_id=product_id,
            interaction_type=row["interaction_type"],
        )

    async def add_to_wishlist(
        self, user_id: str, product_id: str, favorite_type: FavoriteType
    ) -> None:
        row = {
            "user_id": user_id,
            "product_id": product_id,
            "favorite_type": FavoriteType(favorite_type).value,
        }
        await _execute(WISHLIST_TABLE, lambda: self._supabase.table(WISHLIST_TABLE).insert(row))

    async def remove_from_wishlist(self, user_id: str, product_id: str) -> None:
        await _execute(
            WISHLIST_TABLE,
            lambda: self._supabase.table(WISHLIST_TABLE)
            .delete()
            .eq("user_id", user_id)
            .eq("product_id", product_id),
        )
