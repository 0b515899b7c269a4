"""
Event tracking routes.

The web client reports searches and product interactions here; they are the
raw signals the preference profile is computed from. Search history is also
listed back, a page at a time, for the history panel.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from api.dependencies import get_event_store
from core.auth import SupabaseUser, require_auth
from core.logging import get_logger
from core.pagination import get_range
from recs.models import InteractionType, SearchMode
from recs.stores import EventLogStore, StoreError


logger = get_logger(__name__)

router = APIRouter(prefix="/api/events", tags=["Events"])


class SearchEventRequest(BaseModel):
    search_query: str = Field(default="", max_length=500)
    search_filters: Dict[str, Any] = Field(
        default_factory=dict,
        description="Filters applied; 'category' and 'color' feed the preference profile",
    )
    search_mode: SearchMode = SearchMode.TEXT


class InteractionEventRequest(BaseModel):
    product_id: str = Field(..., min_length=1)
    interaction_type: InteractionType
    interaction_data: Dict[str, Any] = Field(
        default_factory=dict,
        description="Product attributes; 'category' and 'color' feed the preference profile",
    )


def _store_failed(action: str, error: StoreError, user_id: str) -> HTTPException:
    logger.error(f"Failed to record {action}", user_id=user_id, source=error.source, error=error.message)
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Could not record {action}")


@router.post("/searches", status_code=status.HTTP_201_CREATED, summary="Record a search")
async def record_search(
    request: SearchEventRequest,
    user: SupabaseUser = Depends(require_auth),
    events: EventLogStore = Depends(get_event_store),
) -> Dict[str, str]:
    try:
        await events.record_search(
            user.id, request.search_query, request.search_filters, request.search_mode
        )
    except StoreError as e:
        raise _store_failed("search", e, user.id)
    return {"status": "recorded"}


@router.post("/interactions", status_code=status.HTTP_201_CREATED, summary="Record a product interaction")
async def record_interaction(
    request: InteractionEventRequest,
    user: SupabaseUser = Depends(require_auth),
    events: EventLogStore = Depends(get_event_store),
) -> Dict[str, str]:
    try:
        await events.record_interaction(
            user.id, request.product_id, request.interaction_type, request.interaction_data
        )
    except StoreError as e:
        raise _store_failed("interaction", e, user.id)
    return {"status": "recorded"}


class SearchHistoryItem(BaseModel):
    search_query: str
    search_filters: Dict[str, Any]
    search_mode: Optional[str] = None
    created_at: Optional[datetime] = None


class SearchHistoryPage(BaseModel):
    page: int
    per_page: int
    items: List[SearchHistoryItem]
    has_more: bool


@router.get("/searches", response_model=SearchHistoryPage, summary="List search history")
async def list_searches(
    page: int = Query(1, description="1-based page number"),
    per_page: int = Query(20, le=100, description="Searches per page"),
    user: SupabaseUser = Depends(require_auth),
    events: EventLogStore = Depends(get_event_store),
) -> SearchHistoryPage:
    """Newest searches first. ``has_more`` is true when the page came back full."""
    page_range = get_range(page, per_page)
    try:
        records = await events.list_searches(user.id, page_range)
    except StoreError as e:
        logger.error("Failed to load search history", user_id=user.id, source=e.source, error=e.message)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail="Could not load search history"
        )

    return SearchHistoryPage(
        page=max(page, 1),
        per_page=page_range.size,
        items=[
            SearchHistoryItem(
                search_query=r.search_query,
                search_filters=r.filters.model_dump(exclude_none=True),
                search_mode=r.search_mode,
                created_at=r.created_at,
            )
            for r in records
        ],
        has_more=len(records) == page_range.size,
    )
