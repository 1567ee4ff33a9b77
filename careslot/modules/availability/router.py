import uuid
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from careslot.core.db import get_session
from careslot.core.security import get_principal, require_doctor
from careslot.modules.availability.service import AvailabilityService
from careslot.modules.availability.schemas import RuleSet, RuleOut

router = APIRouter()

def svc(s: AsyncSession = Depends(get_session)) -> AvailabilityService:
    return AvailabilityService(s)

@router.put("/doctors/{doctor_id}/availability", response_model=RuleOut, dependencies=[Depends(require_doctor)])
async def set_weekly_rule(doctor_id: int, payload: RuleSet, service: AvailabilityService = Depends(svc)):
    obj = await service.set_weekly_rule(
        doctor_id, payload.day_of_week, payload.start_time, payload.end_time, payload.slot_duration_minutes,
        rule_id=payload.rule_id,
    )
    return RuleOut.from_rule(obj)

@router.get("/doctors/{doctor_id}/availability", response_model=list[RuleOut], dependencies=[Depends(get_principal)])
async def list_rules(doctor_id: int, service: AvailabilityService = Depends(svc)):
    return [RuleOut.from_rule(r) for r in await service.list_rules(doctor_id)]

@router.delete("/doctors/{doctor_id}/availability/{rule_id}", response_model=RuleOut, dependencies=[Depends(require_doctor)])
async def deactivate_rule(doctor_id: int, rule_id: uuid.UUID, service: AvailabilityService = Depends(svc)):
    return RuleOut.from_rule(await service.deactivate_rule(rule_id, doctor_id=doctor_id))
