"""
Admin Analytics API

App factory shared by the server entry point (with a lifespan that wires
Postgres, Redis and the change listener) and the tests (without one).
"""

from typing import Any, Callable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from prometheus_client import make_asgi_app

from scr_agro.config import get_settings
from scr_agro.serving.api.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from scr_agro.serving.api.routes import (
    alerts_router,
    analytics_router,
    dashboard_router,
    health_router,
)

API_PREFIX = "/api/v1"
API_TITLE = "SCR Agro Farms Admin Analytics API"


def create_api_app(lifespan: Optional[Callable[[FastAPI], Any]] = None) -> FastAPI:
    settings = get_settings()
    show_docs = not settings.is_production

    app = FastAPI(
        title=API_TITLE,
        description="Sales reports, stock alerts and dashboard counters for the admin console",
        version=settings.version,
        docs_url="/docs" if show_docs else None,
        redoc_url="/redoc" if show_docs else None,
        lifespan=lifespan,
    )

    # The dashboard only reads, plus the manual refresh POST
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.security.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID", "X-Response-Time"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)

    for router, path, tag in (
        (health_router, "", "Health"),
        (analytics_router, "/analytics", "Analytics"),
        (dashboard_router, "/dashboard", "Dashboard"),
        (alerts_router, "/alerts", "Alerts"),
    ):
        app.include_router(router, prefix=API_PREFIX + path, tags=[tag])

    app.mount("/metrics", make_asgi_app())

    @app.get(f"{API_PREFIX}/info")
    async def api_info():
        return {
            "name": API_TITLE,
            "version": settings.version,
            "environment": settings.app_env,
            "realtime_channel": settings.realtime.channel if settings.realtime.enabled else None,
            "docs": "/docs" if show_docs else None,
        }

    return app
