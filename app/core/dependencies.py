"""FastAPI dependencies resolving per-application collaborators.

Collaborators are built in the application lifespan and stored on
``app.state``; tests swap them for in-memory fakes.
"""

from __future__ import annotations

from fastapi import Request

from app.adapters.kv.base import AbstractKeyValueStore
from app.adapters.mezo.base import AbstractMezoClient
from app.services.cache_service import CacheService
from app.services.mezo_service import MezoService


def get_kv_store(request: Request) -> AbstractKeyValueStore:
    return request.app.state.kv_store


def get_cache_service(request: Request) -> CacheService:
    return request.app.state.cache_service


def get_mezo_client(request: Request) -> AbstractMezoClient:
    return request.app.state.mezo_client


def get_mezo_service(request: Request) -> MezoService:
    return MezoService(
        cache=get_cache_service(request),
        client=get_mezo_client(request),
    )
