from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends

from app.adapters.kv.base import BACKEND_ERRORS, AbstractKeyValueStore
from app.core.config import settings
from app.core.dependencies import get_kv_store
from app.schemas.health import HealthResponse

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(
    store: Annotated[AbstractKeyValueStore, Depends(get_kv_store)],
) -> HealthResponse:
    """Health check endpoint.

    Always reports ``status: ok`` while the process serves requests; a cache
    outage only degrades performance, so it is reported separately.
    """

    try:
        cache_status = "ok" if await store.ping() else "unavailable"
    except BACKEND_ERRORS:
        cache_status = "unavailable"

    return HealthResponse(
        status="ok",
        timestamp=datetime.now(timezone.utc).isoformat(),
        service=settings.app.service_name,
        cache=cache_status,
    )


@router.get("/api")
def api_index() -> dict:
    """List the public endpoints."""

    return {
        "message": f"{settings.app.service_name} v1.0",
        "endpoints": {
            "health": "/health",
            "mezo": "/api/mezo",
            "balances": "/api/mezo/balances/{address}",
            "btcPrice": "/api/mezo/btc-price",
            "vaultInfo": "/api/mezo/vault/info",
            "borrowPosition": "/api/mezo/borrow/{address}",
        },
    }
