"""Cache inspection and manual invalidation endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from esports_connect.cache.manager import CacheManager
from esports_connect.dependencies import get_cache
from esports_connect.models import CacheStats, InvalidCacheKeyError

router = APIRouter()


@router.get("/api/cache/stats", response_model=CacheStats)
async def cache_stats(cache: CacheManager = Depends(get_cache)) -> CacheStats:
    return cache.stats()


@router.get("/api/cache/keys")
async def cache_keys(cache: CacheManager = Depends(get_cache)) -> dict[str, list[str]]:
    return {"keys": sorted(cache.keys())}


@router.post("/api/cache/sweep")
async def sweep_cache(cache: CacheManager = Depends(get_cache)) -> dict[str, int]:
    """Drop every expired entry now instead of waiting for the background sweep."""
    return {"removed": cache.clean_expired()}


@router.delete("/api/cache")
async def invalidate_cache(
    prefix: str | None = None,
    cache: CacheManager = Depends(get_cache),
) -> dict[str, int]:
    """Drop every key under ``prefix``, or the whole cache when no prefix is given."""
    if prefix is None:
        removed = cache.size()
        cache.clear()
        return {"removed": removed}
    try:
        return {"removed": cache.delete_prefix(prefix)}
    except InvalidCacheKeyError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.delete("/api/cache/{key:path}")
async def delete_cache_key(key: str, cache: CacheManager = Depends(get_cache)) -> dict[str, bool]:
    if not cache.delete(key):
        raise HTTPException(status_code=404, detail=f"Cache key not found: {key}")
    return {"deleted": True}
