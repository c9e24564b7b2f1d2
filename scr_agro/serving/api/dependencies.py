"""
API Dependencies
"""

from fastapi import HTTPException, Request

from scr_agro.serving.dashboard import DashboardService


def get_dashboard_service(request: Request) -> DashboardService:
    """FastAPI dependency returning the application's dashboard service"""
    service = getattr(request.app.state, "dashboard", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Dashboard service not ready")
    return service
