"""
API Routes Module
"""
from .health import router as health_router
from .analytics import router as analytics_router
from .dashboard import router as dashboard_router
from .alerts import router as alerts_router

__all__ = [
    "health_router",
    "analytics_router",
    "dashboard_router",
    "alerts_router",
]
