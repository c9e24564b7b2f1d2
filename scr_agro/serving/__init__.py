"""
Serving Module
"""
from .cache import init_redis, close_redis, get_redis, CacheManager
from .dashboard import CacheKeys, DashboardService
from .refresh import DashboardRefresher, INVALIDATION_MAP

__all__ = [
    "init_redis",
    "close_redis",
    "get_redis",
    "CacheManager",
    "CacheKeys",
    "DashboardService",
    "DashboardRefresher",
    "INVALIDATION_MAP",
]
