from __future__ import annotations

"""Application factory for FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers,
backend lifecycle) to improve testability compared to a monolithic main.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.adapters.kv.base import AbstractKeyValueStore
from app.adapters.kv.factory import create_kv_store
from app.adapters.mezo.base import AbstractMezoClient
from app.adapters.mezo.factory import create_mezo_client
from app.api.routes import health_router, mezo_router
from app.core.config import settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.openapi import apply_openapi_customizations
from app.core.rate_limit import api_rate_limiter
from app.services.cache_service import CacheService

logger = logging.getLogger(__name__)


def create_app(
    *,
    kv_store: AbstractKeyValueStore | None = None,
    mezo_client: AbstractMezoClient | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        kv_store: Key-value backend; built from settings when omitted.
        mezo_client: Upstream client; built from settings when omitted.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    store = kv_store or create_kv_store()
    client = mezo_client or create_mezo_client()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await store.connect()
        logger.info("app.startup", extra={"env": settings.app_env})
        try:
            yield
        finally:
            await client.close()
            await store.close()
            logger.info("app.shutdown")

    app = FastAPI(
        title=settings.app.service_name,
        description=(
            "Backend for a Bitcoin-backed savings app. Serves cached wallet "
            "balances and BTC price lookups behind per-IP rate limiting."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.kv_store = store
    app.state.cache_service = CacheService(
        store,
        default_ttl_seconds=settings.cache.default_ttl_seconds,
    )
    app.state.mezo_client = client

    # Middleware
    app.middleware("http")(request_id_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.app.cors_origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(
        mezo_router,
        prefix="/api",
        dependencies=[Depends(api_rate_limiter)],
    )
    app.include_router(health_router)

    # OpenAPI customizations (tags, rate limit documentation)
    apply_openapi_customizations(app)

    return app
