"""FastAPI application entry point."""
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from hidden_profiles.api.routers import admin, health, members
from hidden_profiles.core.cache import CacheWriteError, build_cache, set_shared_cache
from hidden_profiles.core.config import get_settings
from hidden_profiles.core.redis import RedisClient, set_redis_client

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifespan - startup and shutdown."""
    app_settings = get_settings()
    logging.getLogger("hidden_profiles").setLevel(app_settings.log_level)

    # Startup: Connect to Redis when enabled
    redis_client = None
    if app_settings.redis_enabled:
        redis_client = RedisClient(
            url=app_settings.redis_url,
            pool_size=app_settings.redis_pool_size,
        )
        await redis_client.connect()
    set_redis_client(redis_client)

    # Startup: Shared cache for the hidden user set
    set_shared_cache(build_cache(redis_client))

    yield

    # Shutdown: Clean up cache and Redis
    set_shared_cache(None)
    if redis_client is not None:
        await redis_client.close()
    set_redis_client(None)


app = FastAPI(
    title="Hidden Profiles API",
    description="Member directory with admin-controlled hidden profiles.",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health.router)
app.include_router(members.router)
app.include_router(admin.router)


@app.exception_handler(CacheWriteError)
async def cache_write_exception_handler(
    _request: Request, exc: CacheWriteError,
) -> JSONResponse:
    """Invalidating the hidden set failed; the request must be retried."""
    logger.error("hidden_set_invalidation_failed key=%s", exc.key)
    return JSONResponse(
        status_code=503,
        content={"detail": "Cache unavailable. Please retry the request."},
        headers={"Retry-After": "5"},
    )
