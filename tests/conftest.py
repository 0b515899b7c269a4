"""
Pytest configuration and shared fixtures for the style feed tests.
"""
import asyncio
import os
import sys
import time
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncGenerator, Callable, Dict, List, Optional, Set
from unittest.mock import MagicMock

import jwt
import pytest
from httpx import ASGITransport, AsyncClient

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(__file__)), "src"))

from dotenv import load_dotenv
load_dotenv(os.path.join(os.path.dirname(os.path.dirname(__file__)), ".env"))

TEST_JWT_SECRET = "test-jwt-secret-with-enough-length-for-hs256"

os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-key")
os.environ["SUPABASE_JWT_SECRET"] = TEST_JWT_SECRET

from core.pagination import PageRange
from recs.config import RecommendationConfig
from recs.models import (
    CatalogFilters,
    FavoriteType,
    InteractionData,
    InteractionRecord,
    InteractionType,
    Product,
    SearchFilters,
    SearchMode,
    SearchRecord,
    WishlistRecord,
)
from recs.stores import StoreError


BASE_TIME = datetime(2025, 1, 1, tzinfo=timezone.utc)


# ============================================================================
# Fakes
# ============================================================================

class FakeCatalogStore:
    """In-memory catalog: filters by membership, newest first, inclusive range."""

    def __init__(self, products: Optional[List[Product]] = None):
        self.products: List[Product] = list(products or [])
        self.calls: List[Dict[str, Any]] = []
        self.fail = False
        # When set, queries wait for the event before answering
        self.gate: Optional[asyncio.Event] = None

    async def query_catalog(self, filters: CatalogFilters, page_range: PageRange) -> List[Product]:
        self.calls.append({"filters": filters, "range": page_range})
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise StoreError("products", "connection refused")

        rows = [
            p for p in self.products
            if (not filters.category_in or p.category in filters.category_in)
            and (not filters.color_in or p.color in filters.color_in)
        ]
        rows.sort(key=lambda p: p.created_at or BASE_TIME, reverse=True)
        return rows[page_range.from_:page_range.to + 1]


class FakeEventLogStore:
    """In-memory event log keyed by user id."""

    def __init__(self):
        self.searches: Dict[str, List[SearchRecord]] = {}
        self.interactions: Dict[str, List[InteractionRecord]] = {}
        self.wishlists: Dict[str, List[WishlistRecord]] = {}
        self.failing: Set[str] = set()
        self.read_calls = 0
        self.written: List[Dict[str, Any]] = []

    def _check(self, source: str) -> None:
        if source in self.failing:
            raise StoreError(source, "permission denied")

    async def query_search_history(self, user_id: str, limit: int) -> List[SearchRecord]:
        self.read_calls += 1
        self._check("user_searches")
        return self.searches.get(user_id, [])[:limit]

    async def query_interaction_history(self, user_id: str, limit: int) -> List[InteractionRecord]:
        self.read_calls += 1
        self._check("user_interactions")
        return self.interactions.get(user_id, [])[:limit]

    async def query_wishlist(self, user_id: str) -> List[WishlistRecord]:
        self.read_calls += 1
        self._check("wishlist")
        return list(self.wishlists.get(user_id, []))

    async def list_searches(self, user_id: str, page_range: PageRange) -> List[SearchRecord]:
        self._check("user_searches")
        return self.searches.get(user_id, [])[page_range.from_:page_range.to + 1]

    async def list_wishlist(self, user_id: str) -> List[WishlistRecord]:
        self._check("wishlist")
        return list(reversed(self.wishlists.get(user_id, [])))

    async def record_search(self, user_id, search_query, search_filters, search_mode) -> None:
        self._check("user_searches")
        self.written.append({
            "table": "user_searches",
            "user_id": user_id,
            "search_query": search_query,
            "search_filters": search_filters,
            "search_mode": SearchMode(search_mode),
        })
        self.searches.setdefault(user_id, []).insert(
            0,
            SearchRecord(
                filters=SearchFilters.model_validate(search_filters or {}),
                search_query=search_query,
                search_mode=SearchMode(search_mode).value,
            ),
        )

    async def record_interaction(self, user_id, product_id, interaction_type, interaction_data=None) -> None:
        self._check("user_interactions")
        self.written.append({
            "table": "user_interactions",
            "user_id": user_id,
            "product_id": product_id,
            "interaction_type": InteractionType(interaction_type),
        })
        self.interactions.setdefault(user_id, []).insert(
            0,
            InteractionRecord(
                interaction_data=InteractionData.model_validate(interaction_data or {}),
                product_id=product_id,
            ),
        )

    async def add_to_wishlist(self, user_id, product_id, favorite_type) -> None:
        self._check("wishlist")
        self.wishlists.setdefault(user_id, []).append(
            WishlistRecord(product_id=product_id, favorite_type=FavoriteType(favorite_type))
        )

    async def remove_from_wishlist(self, user_id, product_id) -> None:
        self._check("wishlist")
        self.wishlists[user_id] = [
            w for w in self.wishlists.get(user_id, []) if w.product_id != product_id
        ]


# ============================================================================
# Fixtures: Test Data Factories
# ============================================================================

@pytest.fixture
def make_product() -> Callable[..., Product]:
    """Product factory; higher ``age`` means older."""

    def factory(product_id: str, category: str = "dresses", color: str = "black", age: int = 0) -> Product:
        return Product(
            id=product_id,
            name=f"Product {product_id}",
            description="",
            price=99.9,
            category=category,
            color=color,
            created_at=BASE_TIME - timedelta(minutes=age),
        )

    return factory


@pytest.fixture
def search() -> Callable[..., SearchRecord]:
    def factory(category: Optional[str] = None, color: Optional[str] = None) -> SearchRecord:
        return SearchRecord(filters=SearchFilters(category=category, color=color))

    return factory


@pytest.fixture
def interaction() -> Callable[..., InteractionRecord]:
    def factory(category: Optional[str] = None, color: Optional[str] = None, product_id: str = "p") -> InteractionRecord:
        return InteractionRecord(
            interaction_data=InteractionData(category=category, color=color),
            product_id=product_id,
        )

    return factory


@pytest.fixture
def config() -> RecommendationConfig:
    return RecommendationConfig()


# ============================================================================
# Fixtures: Stores
# ============================================================================

@pytest.fixture
def catalog_store() -> FakeCatalogStore:
    return FakeCatalogStore()


@pytest.fixture
def event_store() -> FakeEventLogStore:
    return FakeEventLogStore()


@pytest.fixture
def mock_supabase_client():
    """Mock Supabase client; query builders chain back to themselves."""
    client = MagicMock()
    builder = client.table.return_value
    for method in ("select", "eq", "in_", "order", "range", "limit", "insert", "delete"):
        getattr(builder, method).return_value = builder
    builder.execute.return_value.data = []
    return client


# ============================================================================
# Fixtures: FastAPI
# ============================================================================

@pytest.fixture
def make_token() -> Callable[[str], str]:
    """Sign a Supabase-style access token for ``user_id``."""

    def factory(user_id: str, expires_in: int = 3600) -> str:
        payload = {
            "sub": user_id,
            "aud": "authenticated",
            "role": "authenticated",
            "exp": int(time.time()) + expires_in,
        }
        return jwt.encode(payload, TEST_JWT_SECRET, algorithm="HS256")

    return factory


@pytest.fixture
def app(catalog_store, event_store):
    from api.app import create_app
    from config.settings import get_settings_for_testing

    settings = get_settings_for_testing(supabase_jwt_secret=TEST_JWT_SECRET)
    return create_app(settings=settings, catalog_store=catalog_store, event_store=event_store)


@pytest.fixture
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing FastAPI endpoints."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
