"""
Pydantic models for the recommendation core.

Models cover:
- Catalog products as stored in the ``products`` table
- Event-log records (searches, interactions, wishlist) with explicit optional fields
- The derived user preference profile
- Feed snapshots returned to the display layer
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# Enums
# =============================================================================

class InteractionType(str, Enum):
    """Kinds of product interaction the web client reports."""
    VIEW = "view"
    FAVORITE = "favorite"
    CLICK = "click"
    SEARCH_RESULT = "search_result"


class SearchMode(str, Enum):
    """How a search was issued."""
    TEXT = "text"
    FILTERS = "filters"
    OCCASIONS = "occasions"
    IMAGE = "image"


class FavoriteType(str, Enum):
    """Wishlist buckets, stored with the values the web client writes."""
    LIKED = "gostei"
    WANT_TO_BUY = "quero_comprar"


class FeedStatus(str, Enum):
    """Lifecycle of a recommendation feed."""
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"


# =============================================================================
# Catalog
# =============================================================================

class Product(BaseModel):
    """A catalog row. Unknown columns are ignored."""
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str = ""
    description: str = ""
    price: float = 0.0
    category: Optional[str] = None
    color: Optional[str] = None
    brand: Optional[str] = None
    image_url: Optional[str] = None
    in_stock: Optional[bool] = None
    url: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        # uuid in the database, handled as a string here
        return str(v) if v is not None else v

    @field_validator("name", "description", mode="before")
    @classmethod
    def null_text(cls, v):
        return "" if v is None else v

    @field_validator("price", mode="before")
    @classmethod
    def null_price(cls, v):
        return 0.0 if v is None else v


class CatalogFilters(BaseModel):
    """Membership filters for a catalog query. Empty lists mean unfiltered."""
    category_in: List[str] = Field(default_factory=list)
    color_in: List[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.category_in and not self.color_in


# =============================================================================
# Event Log
# =============================================================================

def _as_payload(value: Any) -> Dict[str, Any]:
    """JSON columns may be null or hold a non-object; treat both as empty."""
    return value if isinstance(value, dict) else {}


def _label(value: Any) -> Optional[str]:
    """Scalar label as stored; the catalog filter matches exact values."""
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value)
    return text if text.strip() else None


class SearchFilters(BaseModel):
    """Filter payload saved with a search. Only category/color are scored."""
    model_config = ConfigDict(extra="allow")

    category: Optional[str] = None
    color: Optional[str] = None

    @field_validator("category", "color", mode="before")
    @classmethod
    def normalize_label(cls, v):
        return _label(v)


class InteractionData(BaseModel):
    """Payload saved with a product interaction."""
    model_config = ConfigDict(extra="allow")

    category: Optional[str] = None
    color: Optional[str] = None

    @field_validator("category", "color", mode="before")
    @classmethod
    def normalize_label(cls, v):
        return _label(v)


class SearchRecord(BaseModel):
    filters: SearchFilters = Field(default_factory=SearchFilters)
    search_query: str = ""
    search_mode: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "SearchRecord":
        return cls(
            filters=SearchFilters.model_validate(_as_payload(row.get("search_filters"))),
            search_query=row.get("search_query") or "",
            search_mode=row.get("search_mode"),
            created_at=row.get("created_at"),
        )


class InteractionRecord(BaseModel):
    interaction_data: InteractionData = Field(default_factory=InteractionData)
    product_id: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "InteractionRecord":
        product_id = row.get("product_id")
        return cls(
            interaction_data=InteractionData.model_validate(
                _as_payload(row.get("interaction_data"))
            ),
            product_id=str(product_id) if product_id is not None else None,
            created_at=row.get("created_at"),
        )


class WishlistRecord(BaseModel):
    product_id: str
    favorite_type: Optional[FavoriteType] = None
    added_at: Optional[datetime] = None

    @field_validator("favorite_type", mode="before")
    @classmethod
    def unknown_type(cls, v):
        known = {t.value for t in FavoriteType}
        if isinstance(v, FavoriteType) or v in known:
            return v
        return None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> Optional["WishlistRecord"]:
        """None for rows whose product was deleted (null ``product_id``)."""
        if row.get("product_id") is None:
            return None
        return cls(
            product_id=str(row["product_id"]),
            favorite_type=row.get("favorite_type"),
            added_at=row.get("added_at"),
        )


# =============================================================================
# Preference Profile
# =============================================================================

class UserPreferenceProfile(BaseModel):
    """
    Inferred taste of one user, recomputed on every request.

    ``preferred_categories``/``preferred_colors`` are ranked best first;
    ``favorite_product_ids`` is membership-only.
    """
    model_config = ConfigDict(frozen=True)

    preferred_categories: List[str] = Field(default_factory=list)
    preferred_colors: List[str] = Field(default_factory=list)
    favorite_product_ids: FrozenSet[str] = Field(default_factory=frozenset)

    @classmethod
    def empty(cls) -> "UserPreferenceProfile":
        return cls()

    @property
    def is_empty(self) -> bool:
        return not (
            self.preferred_categories
            or self.preferred_colors
            or self.favorite_product_ids
        )

    def to_filters(self) -> CatalogFilters:
        return CatalogFilters(
            category_in=list(self.preferred_categories),
            color_in=list(self.preferred_colors),
        )


# =============================================================================
# Feed Snapshot
# =============================================================================

class RecommendationPage(BaseModel):
    """What the display layer renders: the accumulated list plus cursor state."""
    user_id: Optional[str] = None
    status: FeedStatus = FeedStatus.IDLE
    items: List[Product] = Field(default_factory=list)
    page_index: int = 0
    has_more: bool = False
    # Length of the most recently fetched page, not of ``items``
    total_count: int = 0
    is_loading: bool = False
