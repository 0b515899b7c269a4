"""
FastAPI Application Factory.

Usage:
    # Development
    uvicorn api.app:create_app --factory --reload

    # Production
    uvicorn api.app:get_app --factory --host 0.0.0.0 --port 8080
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.dependencies import StoreRegistry, build_feed_factory
from config.database import SupabaseClientError
from config.settings import Settings, get_settings
from core.logging import configure_logging, get_logger
from core.middleware import RequestTracingMiddleware
from recs.config import RecommendationConfig
from recs.stores import CatalogStore, EventLogStore
from services.feed_sessions import FeedSessionManager


logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Configure logging on startup; drop feed sessions on shutdown."""
    settings: Settings = app.state.settings

    configure_logging(
        json_logs=settings.is_production,
        log_level="DEBUG" if settings.debug else "INFO",
    )

    logger.info(
        "Starting style feed API",
        environment=settings.environment,
        port=settings.port,
        page_size=app.state.recommendation_config.page_size,
    )

    yield

    logger.info("Shutting down style feed API", **app.state.feed_sessions.get_stats())


def create_app(
    settings: Optional[Settings] = None,
    catalog_store: Optional[CatalogStore] = None,
    event_store: Optional[EventLogStore] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Settings to use (default: environment via get_settings())
        catalog_store: Catalog store override (default: Supabase, built lazily)
        event_store: Event-log store override (default: Supabase, built lazily)
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Style Feed API",
        description="""
        Personalized product recommendations for the fashion web app.

        ## Main Endpoints

        - `/api/recommendations` - Paginated feed, biased by inferred taste
        - `/api/preferences` - Inferred categories, colors and favorites
        - `/api/events/*` - Search and interaction tracking
        - `/api/wishlist` - Saved products
        """,
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    # =========================================================================
    # Application State
    # =========================================================================

    recommendation_config = RecommendationConfig.from_settings(settings)
    stores = StoreRegistry(catalog=catalog_store, events=event_store)

    app.state.settings = settings
    app.state.recommendation_config = recommendation_config
    app.state.stores = stores
    app.state.feed_sessions = FeedSessionManager(
        build_feed_factory(stores, recommendation_config),
        ttl_seconds=settings.feed_session_ttl_seconds,
    )

    # =========================================================================
    # Middleware (order matters - first added = outermost)
    # =========================================================================

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestTracingMiddleware)

    @app.exception_handler(SupabaseClientError)
    async def supabase_unavailable(request: Request, exc: SupabaseClientError) -> JSONResponse:
        logger.error("Supabase client unavailable", error=str(exc))
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Database not configured"},
        )

    # =========================================================================
    # Routes
    # =========================================================================

    from api.routes.health import router as health_router
    from api.routes.recommendations import router as recommendations_router
    from api.routes.events import router as events_router
    from api.routes.wishlist import router as wishlist_router

    app.include_router(health_router)
    app.include_router(recommendations_router)
    app.include_router(events_router)
    app.include_router(wishlist_router)

    return app


def get_app() -> FastAPI:
    """Application built from environment settings (for ASGI servers)."""
    return create_app()
