"""API Routers."""

from finflux.api.session import router as session_router
from finflux.api.dashboard import router as dashboard_router

__all__ = ["session_router", "dashboard_router"]
