from fastapi import APIRouter
from careslot.modules.availability.router import router as availability_router
from careslot.modules.exceptions.router import router as exceptions_router
from careslot.modules.slots.router import router as slots_router
from careslot.modules.appointments.router import router as appointments_router

api_router = APIRouter()
api_router.include_router(exceptions_router, tags=["availability"])
api_router.include_router(availability_router, tags=["availability"])
api_router.include_router(slots_router, tags=["slots"])
api_router.include_router(appointments_router, tags=["appointments"])

@api_router.get("/health", tags=["health"])
async def health():
    return {"status": "ok"}
