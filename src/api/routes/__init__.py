"""
Route modules for the API.

Each module exports a FastAPI APIRouter with endpoints
for a specific domain/feature.
"""

from api.routes import events, health, recommendations, wishlist

__all__ = ["events", "health", "recommendations", "wishlist"]
