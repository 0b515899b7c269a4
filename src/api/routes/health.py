"""
Health check endpoints.

Provides endpoints for monitoring application health and status.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from api.dependencies import get_feed_sessions
from config.database import check_catalog_connection, get_supabase_client_optional
from config.settings import get_settings
from services.feed_sessions import FeedSessionManager


router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check() -> Dict[str, Any]:
    return {
        "status": "healthy",
        "service": "style-feed-api",
    }


@router.get("/health/detailed")
async def detailed_health_check(
    sessions: FeedSessionManager = Depends(get_feed_sessions),
) -> Dict[str, Any]:
    """
    Detailed health check with dependency status.

    Checks:
    - Configuration loaded
    - Supabase connection (one-row catalog read)
    - Open feed sessions
    """
    settings = get_settings()

    supabase_status, supabase_error = check_catalog_connection(get_supabase_client_optional())

    return {
        "status": "healthy" if supabase_status == "connected" else "degraded",
        "service": "style-feed-api",
        "environment": settings.environment,
        "checks": {
            "config": "ok",
            "supabase": {
                "status": supabase_status,
                "error": supabase_error,
            },
            "feed_sessions": sessions.get_stats(),
        },
    }


@router.get("/ready")
async def readiness_check() -> Dict[str, str]:
    """Kubernetes-style readiness probe."""
    if get_supabase_client_optional() is None:
        return {"status": "not_ready", "reason": "database_not_configured"}
    return {"status": "ready"}


@router.get("/live")
async def liveness_check() -> Dict[str, str]:
    """Kubernetes-style liveness probe."""
    return {"status": "alive"}
