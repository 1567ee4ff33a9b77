from datetime import date
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from careslot.core.db import get_session
from careslot.core.security import get_principal, require_doctor
from careslot.modules.exceptions.service import ExceptionService
from careslot.modules.exceptions.schemas import ExceptionSet, ExceptionOut

router = APIRouter()

def svc(s: AsyncSession = Depends(get_session)) -> ExceptionService:
    return ExceptionService(s)

@router.post("/doctors/{doctor_id}/availability/exceptions", response_model=ExceptionOut, dependencies=[Depends(require_doctor)])
async def set_exception(doctor_id: int, payload: ExceptionSet, service: ExceptionService = Depends(svc)):
    obj = await service.set_exception(
        doctor_id, payload.date, is_available=payload.is_available,
        start_minute=payload.start_time, end_minute=payload.end_time, slot_minutes=payload.slot_duration_minutes,
    )
    return ExceptionOut.from_exception(obj)

@router.get("/doctors/{doctor_id}/availability/exceptions", response_model=list[ExceptionOut], dependencies=[Depends(get_principal)])
async def list_exceptions(doctor_id: int, startDate: date | None = None, endDate: date | None = None, service: ExceptionService = Depends(svc)):
    return [ExceptionOut.from_exception(e) for e in await service.list_exceptions(doctor_id, startDate, endDate)]

@router.delete("/doctors/{doctor_id}/availability/exceptions/{day}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(require_doctor)])
async def delete_exception(doctor_id: int, day: date, service: ExceptionService = Depends(svc)):
    await service.delete_exception(doctor_id, day)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
