from fastapi import APIRouter
from zync.api.api_v1.endpoints import auth, profile, availability, booking, schedules, analytics

router = APIRouter()

# Include all routers
router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
router.include_router(profile.router, prefix="/profile", tags=["Profile"])
router.include_router(availability.router, prefix="/availability", tags=["Availability"])
router.include_router(booking.router, prefix="/booking", tags=["Booking"])
router.include_router(schedules.router, prefix="/schedules", tags=["Schedules"])
router.include_router(analytics.router, prefix="/analytics", tags=["Analytics"])
