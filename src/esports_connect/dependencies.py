"""FastAPI dependency injection helpers."""

from __future__ import annotations

from functools import lru_cache

from fastapi import Request

from esports_connect.cache.manager import CacheManager
from esports_connect.config import Settings
from esports_connect.data.client import DataBackend, EsportsDataClient


@lru_cache
def get_settings() -> Settings:
    return Settings()


def build_cache(settings: Settings) -> CacheManager:
    return CacheManager(
        default_ttl=settings.cache_default_ttl_ms,
        max_entries=settings.cache_max_entries,
    )


def build_data_client(backend: DataBackend, cache: CacheManager, settings: Settings) -> EsportsDataClient:
    """Wire a backend binding to the application cache.

    ``create_app`` does not call this: the service ships no concrete backend,
    so an embedding application supplies its own ``DataBackend`` and passes
    ``app.state.cache`` here to share the cache the admin endpoints manage.
    """
    return EsportsDataClient(
        backend,
        cache,
        slow_threshold_ms=settings.slow_operation_threshold_ms,
    )


def get_cache(request: Request) -> CacheManager:
    """The cache owned by the running application (see ``create_app``)."""
    return request.app.state.cache
