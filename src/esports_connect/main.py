"""FastAPI application factory and lifespan."""
import asyncio
import logging
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from esports_connect.api.router import api_router
from esports_connect.cache.manager import CacheManager
from esports_connect.config import Settings
from esports_connect.dependencies import build_cache, get_settings

logger = logging.getLogger(__name__)


async def sweep_periodically(cache: CacheManager, interval_seconds: float) -> None:
    """Drop expired entries every ``interval_seconds`` until cancelled."""
    while True:
        await asyncio.sleep(interval_seconds)
        cache.clean_expired()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    settings: Settings = app.state.settings
    logger.info("Starting EsportsConnect application")
    sweeper = None
    if settings.cache_sweep_interval_seconds > 0:
        sweeper = asyncio.create_task(
            sweep_periodically(app.state.cache, settings.cache_sweep_interval_seconds)
        )
    yield
    # Shutdown
    if sweeper is not None:
        sweeper.cancel()
        with suppress(asyncio.CancelledError):
            await sweeper
    logger.info("Shutting down EsportsConnect application")


def create_app(settings: Settings | None = None) -> FastAPI:
    if settings is None:
        settings = get_settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="EsportsConnect",
        version="0.1.0",
        description="Read-path cache service for EsportsConnect",
        lifespan=lifespan,
    )
    app.state.settings = settings
    # One cache per application; request handlers reach it through get_cache
    app.state.cache = build_cache(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    return app


app = create_app()
