"""API route aggregation.

All routers registered here get mounted in main.py under /api.

Learn: Auth isn't applied at the include_router level here. The tutor
routes each depend on require_access(...) for their dashboard area, and
the auth router mixes open (login, access) and signed-in (session) routes.
"""

from fastapi import APIRouter

from eduprima.api.auth import router as auth_router
from eduprima.api.health import router as health_router
from eduprima.api.tutor_status_types import router as tutor_status_types_router
from eduprima.api.tutors import router as tutors_router

api_router = APIRouter(prefix="/api")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(tutor_status_types_router, tags=["tutor-status"])
api_router.include_router(tutors_router, tags=["tutors", "tutor-status"])
