"""Aggregates all sub-routers."""
from fastapi import APIRouter

from esports_connect.api.cache import router as cache_router
from esports_connect.api.health import router as health_router

api_router = APIRouter()
api_router.include_router(health_router, tags=["health"])
api_router.include_router(cache_router, tags=["cache"])
