from fastapi import APIRouter

from smartcare.api.routes.admin import router as admin_router
from smartcare.api.routes.ai_routes import router as ai_router
from smartcare.api.routes.appointments import router as appointments_router
from smartcare.api.routes.auth import router as auth_router
from smartcare.api.routes.caregivers import router as caregivers_router
from smartcare.api.routes.doctors import router as doctors_router
from smartcare.api.routes.health_records import router as health_records_router

api_router = APIRouter()

# Session / profile
api_router.include_router(auth_router)

# Patient, caregiver and doctor workflows
api_router.include_router(caregivers_router)
api_router.include_router(appointments_router)
api_router.include_router(doctors_router)
api_router.include_router(health_records_router)
api_router.include_router(ai_router)

# Admin
api_router.include_router(admin_router)
