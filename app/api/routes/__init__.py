from __future__ import annotations

from app.api.routes.health import router as health_router
from app.api.routes.mezo import router as mezo_router

__all__ = ["health_router", "mezo_router"]
