"""
Wishlist routes.

Wishlisted products are the "favorites" the recommendation feed moves to the
top of its first page.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from api.dependencies import get_event_store
from core.auth import SupabaseUser, require_auth
from core.logging import get_logger
from recs.models import FavoriteType, WishlistRecord
from recs.stores import EventLogStore, StoreError


logger = get_logger(__name__)

router = APIRouter(prefix="/api/wishlist", tags=["Wishlist"])


class AddToWishlistRequest(BaseModel):
    product_id: str = Field(..., min_length=1)
    favorite_type: FavoriteType = FavoriteType.LIKED


@router.get("", response_model=List[WishlistRecord], summary="List the caller's wishlist")
async def list_wishlist(
    user: SupabaseUser = Depends(require_auth),
    events: EventLogStore = Depends(get_event_store),
) -> List[WishlistRecord]:
    try:
        return await events.list_wishlist(user.id)
    except StoreError as e:
        logger.error("Failed to load wishlist", user_id=user.id, error=e.message)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Could not load wishlist")


@router.post("", status_code=status.HTTP_201_CREATED, summary="Add a product to the wishlist")
async def add_to_wishlist(
    request: AddToWishlistRequest,
    user: SupabaseUser = Depends(require_auth),
    events: EventLogStore = Depends(get_event_store),
) -> dict:
    try:
        await events.add_to_wishlist(user.id, request.product_id, request.favorite_type)
    except StoreError as e:
        logger.error(
            "Failed to add to wishlist",
            user_id=user.id,
            product_id=request.product_id,
            error=e.message,
        )
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Could not update wishlist")
    return {"product_id": request.product_id, "status": "added"}


@router.delete("/{product_id}", summary="Remove a product from the wishlist")
async def remove_from_wishlist(
    product_id: str,
    user: SupabaseUser = Depends(require_auth),
    events: EventLogStore = Depends(get_event_store),
) -> dict:
    try:
        await events.remove_from_wishlist(user.id, product_id)
    except StoreError as e:
        logger.error("Failed to remove from wishlist", user_id=user.id, product_id=product_id, error=e.message)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Could not update wishlist")
    return {"product_id": product_id, "status": "removed"}
