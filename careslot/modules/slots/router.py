from datetime import date
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from careslot.core.db import get_session
from careslot.modules.slots.service import SlotService
from careslot.modules.slots.schemas import SlotsOut, SlotOut, DaySummaryOut

router = APIRouter()

def svc(s: AsyncSession = Depends(get_session)) -> SlotService:
    return SlotService(s)

# Slot search is public: patients browse before signing in
@router.get("/doctors/{doctor_id}/slots", response_model=SlotsOut)
async def get_slots(doctor_id: int, date: date, service: SlotService = Depends(svc)):
    slots = await service.generate_slots(doctor_id, date)
    return SlotsOut(doctor_id=doctor_id, date=date, slots=[SlotOut(start_time=s.start_minute, end_time=s.end_minute) for s in slots])

@router.get("/doctors/{doctor_id}/slots/summary", response_model=list[DaySummaryOut])
async def get_slot_summary(doctor_id: int, startDate: date, endDate: date, service: SlotService = Depends(svc)):
    return [DaySummaryOut(**d) for d in await service.summarize(doctor_id, startDate, endDate)]
