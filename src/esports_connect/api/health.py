"""Health check endpoint."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from esports_connect.cache.manager import CacheManager
from esports_connect.dependencies import get_cache

router = APIRouter()


@router.get("/api/health")
async def health(cache: CacheManager = Depends(get_cache)) -> dict[str, Any]:
    """Liveness plus the number of entries the application cache holds, stale included."""
    return {"status": "ok", "cache_entries": cache.size()}
