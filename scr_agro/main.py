"""
FastAPI Production Application

Main entry point for the SCR Agro Farms Admin Analytics API.
"""

from contextlib import asynccontextmanager

import asyncpg
from fastapi import FastAPI
import structlog

from scr_agro.config import get_settings
from scr_agro.config.logging import configure_logging
from scr_agro.database.connection import init_database, close_database
from scr_agro.database.notifications import ChangeFeed, PostgresChangeListener
from scr_agro.serving.api.main import create_api_app
from scr_agro.serving.cache import CacheManager, init_redis, close_redis
from scr_agro.serving.dashboard import DashboardService
from scr_agro.serving.refresh import DashboardRefresher, INVALIDATION_MAP

logger = structlog.get_logger(__name__)

CACHE_NAMESPACE = "admin"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    configure_logging()
    settings = get_settings()

    logger.info("Starting SCR Agro Farms Admin Analytics API", environment=settings.app_env)

    try:
        await init_database()
    except Exception as e:
        logger.warning("Database init failed", error=str(e))

    try:
        await init_redis()
    except Exception as e:
        logger.warning("Redis init failed", error=str(e))

    cache = CacheManager(CACHE_NAMESPACE, default_ttl=settings.reporting.cache_ttl_seconds)
    app.state.dashboard = DashboardService(cache, settings=settings)

    feed = ChangeFeed()
    refresher = DashboardRefresher(
        feed,
        cache,
        {t: INVALIDATION_MAP[t] for t in settings.realtime.tables if t in INVALIDATION_MAP},
    )
    refresher.start()

    listener = None
    if settings.realtime.enabled:
        listener = PostgresChangeListener(
            feed,
            settings.database.listen_dsn,
            channel=settings.realtime.channel,
            reconnect_delay=settings.realtime.reconnect_delay_seconds,
        )
        try:
            await listener.start()
        except (OSError, asyncpg.PostgresError) as e:
            logger.warning("Change listener unavailable, cached values expire by TTL only", error=str(e))
            listener = None
    app.state.change_listener = listener

    yield

    logger.info("Shutting down...")
    if listener is not None:
        await listener.stop()
    refresher.stop()
    await close_redis()
    await close_database()


app = create_api_app(lifespan=lifespan)


def run() -> None:
    """Console entry point."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    run()
