"""BudgetSync — FastAPI Application Entry Point.

Marketing budget request tracker: regional managers submit spend requests,
territory managers approve them, finance marks them paid.
"""

import os
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Callable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from budgetsync.cache.local_cache import LocalCache
from budgetsync.config import settings
from budgetsync.connectors.remote.base import RemoteStore
from budgetsync.connectors.remote.client import PostgrestClient
from budgetsync.core.reference_data import INITIAL_USERS
from budgetsync.database import check_connection, create_cache_engine, init_db
from budgetsync.sync.engine import SyncEngine
from budgetsync.sync.session import SessionManager
from budgetsync.api.request_routes import router as request_router
from budgetsync.api.reference_routes import router as reference_router
from budgetsync.api.analytics_routes import router as analytics_router
from budgetsync.core.logging import get_logger

logger = get_logger("main")

IS_SERVERLESS = bool(
    os.environ.get("VERCEL") or os.environ.get("AWS_LAMBDA_FUNCTION_NAME")
)


@dataclass
class Services:
    """Everything one process shares: built once, disposed on shutdown."""

    engine: SyncEngine
    sessions: SessionManager
    remote: RemoteStore


def build_services() -> Services:
    """Wire the cache, remote client and sync engine from settings."""
    cache_engine = create_cache_engine(settings.effective_cache_url)
    if check_connection(cache_engine):
        init_db(cache_engine)
    else:
        logger.error("❌ Local cache NOT available — offline fallback disabled")
    cache = LocalCache(cache_engine)
    remote = PostgrestClient()
    return Services(
        engine=SyncEngine(remote, cache),
        sessions=SessionManager(cache, INITIAL_USERS),
        remote=remote,
    )


def create_app(services_factory: Optional[Callable[[], Services]] = None) -> FastAPI:
    factory = services_factory or build_services

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown lifecycle."""
        logger.info("🚀 BudgetSync starting up...")
        logger.info(f"🌍 Environment: {'SERVERLESS' if IS_SERVERLESS else 'LOCAL'}")
        services = factory()
        app.state.engine = services.engine
        app.state.sessions = services.sessions
        services.sessions.restore()
        try:
            await services.engine.init(
                subscribe=settings.change_feed_enabled and not IS_SERVERLESS
            )
            yield
        finally:
            await services.engine.dispose()
            await services.remote.close()
            logger.info("BudgetSync shut down")

    app = FastAPI(
        title="BudgetSync",
        description="Marketing budget requests with optimistic local state synced to a remote table.",
        version="1.0.0",
        lifespan=lifespan,
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(request_router)
    app.include_router(reference_router)
    app.include_router(analytics_router)

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "service": "budgetsync",
            "version": "1.0.0",
        }

    return app


app = create_app()
