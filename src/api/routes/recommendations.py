"""
Recommendation feed routes.

The web client generates a ``session_id`` per viewing session and passes it on
every call. Anonymous visitors get the newest catalog items; signed-in users
get a feed biased by their inferred preferences. Signing in or out under the
same session restarts the feed from page 1.

Endpoints:
- GET    /api/recommendations            current page snapshot (starts the feed)
- POST   /api/recommendations/more       append the next page
- DELETE /api/recommendations/{id}       drop a session
- GET    /api/preferences                the caller's inferred profile
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from api.dependencies import get_aggregator, get_feed_sessions
from core.auth import SupabaseUser, get_current_user, require_auth
from recs.feed import RecommendationFeed
from recs.models import FeedStatus, Product
from recs.preferences import PreferenceAggregator
from services.feed_sessions import FeedSessionManager


router = APIRouter(prefix="/api", tags=["Recommendations"])


# =============================================================================
# Request/Response Models
# =============================================================================

class RecommendationResponse(BaseModel):
    session_id: str
    user_id: Optional[str] = None
    status: FeedStatus
    items: List[Product]
    page_index: int
    has_more: bool
    total_count: int = Field(..., description="Items in the most recently fetched page")
    loaded_count: int = Field(..., description="Items accumulated in this feed")
    is_loading: bool


class LoadMoreRequest(BaseModel):
    session_id: str = Field(..., min_length=1, max_length=128)


class PreferenceProfileResponse(BaseModel):
    user_id: str
    preferred_categories: List[str]
    preferred_colors: List[str]
    favorite_product_ids: List[str]


def _to_response(session_id: str, feed: RecommendationFeed) -> RecommendationResponse:
    page = feed.snapshot()
    return RecommendationResponse(
        session_id=session_id,
        user_id=page.user_id,
        status=page.status,
        items=page.items,
        page_index=page.page_index,
        has_more=page.has_more,
        total_count=page.total_count,
        loaded_count=len(page.items),
        is_loading=page.is_loading,
    )


def _user_id(user: Optional[SupabaseUser]) -> Optional[str]:
    return user.id if user else None


# =============================================================================
# Endpoints
# =============================================================================

@router.get(
    "/recommendations",
    response_model=RecommendationResponse,
    summary="Get the recommendation feed for a session",
)
async def get_recommendations(
    session_id: str = Query(..., min_length=1, max_length=128),
    user: Optional[SupabaseUser] = Depends(get_current_user),
    sessions: FeedSessionManager = Depends(get_feed_sessions),
) -> RecommendationResponse:
    session = await sessions.resolve(session_id, _user_id(user))
    return _to_response(session_id, session.feed)


@router.post(
    "/recommendations/more",
    response_model=RecommendationResponse,
    summary="Load the next page of recommendations",
)
async def load_more_recommendations(
    request: LoadMoreRequest,
    user: Optional[SupabaseUser] = Depends(get_current_user),
    sessions: FeedSessionManager = Depends(get_feed_sessions),
) -> RecommendationResponse:
    session = sessions.get(request.session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Feed session not found")

    user_id = _user_id(user)
    if session.feed.user_id != user_id:
        # Identifier changed since the feed was built: start over, don't append
        session = await sessions.resolve(request.session_id, user_id)
    else:
        await session.feed.load_more()

    return _to_response(request.session_id, session.feed)


@router.delete("/recommendations/{session_id}", summary="Close a feed session")
async def delete_recommendations(
    session_id: str,
    sessions: FeedSessionManager = Depends(get_feed_sessions),
) -> dict:
    return {"session_id": session_id, "deleted": sessions.delete(session_id)}


@router.get(
    "/preferences",
    response_model=PreferenceProfileResponse,
    summary="Get the caller's inferred preference profile",
)
async def get_preferences(
    user: SupabaseUser = Depends(require_auth),
    aggregator: PreferenceAggregator = Depends(get_aggregator),
) -> PreferenceProfileResponse:
    profile = await aggregator.compute_profile(user.id)
    return PreferenceProfileResponse(
        user_id=user.id,
        preferred_categories=profile.preferred_categories,
        preferred_colors=profile.preferred_colors,
        favorite_product_ids=sorted(profile.favorite_product_ids),
    )
