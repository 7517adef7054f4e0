"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: no router is wrapped in an auth dependency. Every route resolves
the identity the same soft way (get_identity → Identity or None), and
the service layer's guard decides per operation whether None, the
wrong role, or the wrong owner is a denial. Public and protected routes
therefore share one validator.
"""

from fastapi import APIRouter

from coursereg.api.auth import router as auth_router
from coursereg.api.courses import router as courses_router
from coursereg.api.health import router as health_router
from coursereg.api.registrations import router as registrations_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(courses_router, tags=["courses"])
api_router.include_router(registrations_router, tags=["registrations"])
