"""
API Module
FastAPI routers for the DoseTrack application
"""

from api.patients import router as patients_router
from api.medications import router as medications_router
from api.medications import categories_router
from api.schedules import router as schedules_router
from api.schedules import doses_router

from api.deps import (
    get_db,
    get_current_patient_id,
    services,
)


__all__ = [
    # Routers
    "patients_router",
    "medications_router",
    "categories_router",
    "schedules_router",
    "doses_router",
    # Dependencies
    "get_db",
    "get_current_patient_id",
    "services",
]


def include_routers(app, prefix: str = "/api/v1"):
    """
    Include all API routers in the FastAPI app

    Usage:
        from api import include_routers
        include_routers(app)
    """
    app.include_router(patients_router, prefix=prefix)
    app.include_router(medications_router, prefix=prefix)
    app.include_router(categories_router, prefix=prefix)
    app.include_router(schedules_router, prefix=prefix)
    app.include_router(doses_router, prefix=prefix)
