"""
Health Check Endpoints

The dashboard keeps working without Redis (values are recomputed) and without
the change listener (cached values expire by TTL), so those only degrade the
status. The backend database is required for readiness.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Request, Response
from pydantic import BaseModel

from scr_agro.config import get_settings
from scr_agro.database.connection import check_database_health
from scr_agro.serving.cache import get_redis

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    version: str
    environment: str
    timestamp: datetime
    checks: Dict[str, Any]


async def _redis_health() -> Dict[str, Any]:
    try:
        await get_redis().ping()
    except Exception as e:
        return {"status": "unhealthy", "error": str(e)}
    return {"status": "healthy"}


def _listener_health(request: Request) -> Dict[str, Any]:
    if not get_settings().realtime.enabled:
        return {"status": "disabled"}
    listener = getattr(request.app.state, "change_listener", None)
    if listener is None or not listener.is_listening:
        return {"status": "unhealthy", "channel": get_settings().realtime.channel}
    return {"status": "healthy", "channel": listener.channel}


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Database, Redis and change-listener status."""
    settings = get_settings()
    checks = {
        "database": await check_database_health(),
        "redis": await _redis_health(),
        "change_listener": _listener_health(request),
    }

    if checks["database"]["status"] != "healthy":
        status = "unhealthy"
    elif any(c["status"] == "unhealthy" for c in checks.values()):
        status = "degraded"
    else:
        status = "healthy"

    return HealthResponse(
        status=status,
        version=settings.version,
        environment=settings.app_env,
        timestamp=datetime.now(timezone.utc),
        checks=checks,
    )


@router.get("/health/live")
async def liveness_check() -> Dict[str, str]:
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness_check(response: Response) -> Dict[str, str]:
    """503 until the backend database answers."""
    db_health = await check_database_health()
    if db_health["status"] != "healthy":
        response.status_code = 503
        return {"status": "not_ready", "reason": "database_unavailable"}
    return {"status": "ready"}
