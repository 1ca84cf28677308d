"""
API Module
FastAPI routers for the DoseCadence application
"""

from config import settings as app_settings

from api.protocols import router as protocols_router
from api.injections import router as injections_router
from api.settings import router as settings_router
from api.calendar import router as calendar_router
from api.insights import router as insights_router
from api.schedule import router as schedule_router

from api.deps import (
    get_db,
    value_error_status,
    services,
)


__all__ = [
    # Routers
    "protocols_router",
    "injections_router",
    "settings_router",
    "calendar_router",
    "insights_router",
    "schedule_router",
    # Dependencies
    "get_db",
    "value_error_status",
    "services",
]


def include_routers(app):
    """
    Include all API routers in the FastAPI app

    Usage:
        from api import include_routers
        include_routers(app)
    """
    app.include_router(protocols_router, prefix=app_settings.API_PREFIX)
    app.include_router(injections_router, prefix=app_settings.API_PREFIX)
    app.include_router(settings_router, prefix=app_settings.API_PREFIX)
    app.include_router(calendar_router, prefix=app_settings.API_PREFIX)
    app.include_router(insights_router, prefix=app_settings.API_PREFIX)
    app.include_router(schedule_router, prefix=app_settings.API_PREFIX)
