"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance, mounts the v1
router, and owns the lifespan of the shared store pool, cache client,
membership index and token signer.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import psycopg
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from psycopg_pool import ConnectionPool, PoolTimeout

from src.adapters.cache.redis_cache import RedisCache
from src.adapters.repository.postgres import PostgresUserRepository, run_migrations
from src.adapters.signing.jwt_signer import JwtTokenSigner
from src.api.v1 import router as v1_router
from src.config.settings import get_settings
from src.domain.exceptions import CacheUnavailable
from src.domain.membership import build_membership_index

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "v1",
        "description": "Verified Registration API v1 - Email codes, username checks, "
        "registration and login",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Creates database connection pool and runs migrations
    - Connects to the cache tier
    - Builds the username membership index from the store
    - Closes connections on shutdown

    Store or cache connection failures abort startup; the process must
    not serve traffic without them. A failed index build does not: the
    resolver then always consults the cache and store.
    """
    settings = get_settings()
    logging.basicConfig(level=settings.log_level)

    logger.info("Starting application...")
    logger.info("Connecting to database...")

    # Open eagerly so an unreachable database fails startup, not the first request
    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
        open=False,
    )
    try:
        pool.open(wait=True, timeout=settings.pool_open_timeout)
    except PoolTimeout as e:
        pool.close()
        raise RuntimeError("Database connection failed") from e

    # Run migrations
    logger.info("Running database migrations...")
    run_migrations(pool)

    logger.info("Connecting to cache...")
    cache = RedisCache.from_url(settings.redis_url, settings.redis_socket_timeout)
    try:
        cache.ping()
    except CacheUnavailable as e:
        pool.close()
        raise RuntimeError("Cache connection failed") from e

    logger.info("Building membership index...")
    membership_index = build_membership_index(
        PostgresUserRepository(pool),
        expected_items=settings.bloom_expected_items,
        false_positive_rate=settings.bloom_false_positive_rate,
    )

    # Store shared resources in app state for dependency injection
    app.state.pool = pool
    app.state.cache = cache
    app.state.membership_index = membership_index
    app.state.signer = JwtTokenSigner(settings.jwt_secret, settings.jwt_algorithm)

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    cache.close()
    pool.close()
    logger.info("Database connection pool closed")


app = FastAPI(
    title="handshake",
    description="Verified Registration API - Tiered username availability and "
    "email-verified account creation",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

# Include v1 API routes
app.include_router(v1_router, prefix="/v1")


@app.get("/health")
def health_check(request: Request) -> JSONResponse:
    """
    Health check endpoint with database and cache validation.

    Returns 200 when the store and cache both answer, 503 otherwise. A
    disabled membership index is reported but does not fail the check.
    """
    checks = {"database": "ok", "cache": "ok"}

    try:
        with request.app.state.pool.connection() as conn:
            conn.execute("SELECT 1")
    except psycopg.Error:
        logger.exception("Health check: database unreachable")
        checks["database"] = "unavailable"

    try:
        request.app.state.cache.ping()
    except CacheUnavailable:
        logger.exception("Health check: cache unreachable")
        checks["cache"] = "unavailable"

    index = getattr(request.app.state, "membership_index", None)
    checks["membership_index"] = "ok" if index is not None else "disabled"

    healthy = checks["database"] == "ok" and checks["cache"] == "ok"
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "healthy" if healthy else "unhealthy", **checks},
    )
