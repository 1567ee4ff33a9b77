import uuid
import logging
from sqlalchemy.ext.asyncio import AsyncSession
from careslot.core.clock import MINUTES_PER_DAY, format_hhmm
from careslot.core.errors import ValidationError, OverlapError, NotFoundError
from careslot.modules.availability.repository import AvailabilityRepository
from careslot.modules.availability.models import WeeklyAvailabilityRule
from careslot.modules.directory.repository import DoctorRepository

logger = logging.getLogger(__name__)

MIN_SLOT_MINUTES = 5
MAX_SLOT_MINUTES = 240

def check_window(start_minute: int, end_minute: int, slot_minutes: int | None):
    """Validate a same-day window; shared with date exceptions."""
    if not (0 <= start_minute < MINUTES_PER_DAY):
        raise ValidationError("start time out of range", field="startTime")
    if not (0 < end_minute <= MINUTES_PER_DAY):
        raise ValidationError("end time out of range", field="endTime")
    if end_minute <= start_minute:
        raise ValidationError("end time must be after start time; overnight windows are not supported", field="endTime")
    if slot_minutes is None:
        return
    if not (MIN_SLOT_MINUTES <= slot_minutes <= MAX_SLOT_MINUTES):
        raise ValidationError(f"slot duration must be between {MIN_SLOT_MINUTES} and {MAX_SLOT_MINUTES} minutes", field="slotDurationMinutes")
    if slot_minutes > end_minute - start_minute:
        raise ValidationError("slot duration is longer than the window", field="slotDurationMinutes")

class AvailabilityService:
    def __init__(self, s: AsyncSession):
        self.s = s
        self.repo = AvailabilityRepository(s)
        self.doctors = DoctorRepository(s)

    async def set_weekly_rule(self, doctor_id: int, day_of_week: int, start_minute: int, end_minute: int, slot_minutes: int, *, rule_id: uuid.UUID | None = None) -> WeeklyAvailabilityRule:
        if not 1 <= day_of_week <= 7:
            raise ValidationError("dayOfWeek must be 1 (Monday) .. 7 (Sunday)", field="dayOfWeek")
        check_window(start_minute, end_minute, slot_minutes)
        # row lock on the doctor so the overlap check and the write below see a stable rule set
        await self.doctors.require(doctor_id, for_update=True)

        existing = None
        if rule_id is not None:
            existing = await self.repo.get_rule(rule_id)
            if existing is None or existing.doctor_id != doctor_id or not existing.active:
                raise NotFoundError("availability rule not found", field="ruleId")

        clash = await self.repo.overlapping(doctor_id, day_of_week, start_minute, end_minute, exclude_id=rule_id)
        if clash:
            c = clash[0]
            raise OverlapError(
                f"window overlaps the active rule {format_hhmm(c.start_minute)}-{format_hhmm(c.end_minute)} on day {day_of_week}",
                field="startTime",
            )

        if existing is None:
            obj = await self.repo.create_rule(doctor_id=doctor_id, day_of_week=day_of_week, start_minute=start_minute, end_minute=end_minute, slot_minutes=slot_minutes, active=True)
        else:
            existing.day_of_week = day_of_week
            existing.start_minute = start_minute
            existing.end_minute = end_minute
            existing.slot_minutes = slot_minutes
            await self.s.flush()
            obj = existing
        await self.s.commit()
        logger.info("Weekly rule %s set for doctor=%s day=%s %s-%s/%smin", obj.id, doctor_id, day_of_week, format_hhmm(start_minute), format_hhmm(end_minute), slot_minutes)
        return obj

    async def list_rules(self, doctor_id: int, *, include_inactive: bool = False):
        return await self.repo.list_rules(doctor_id, include_inactive=include_inactive)

    async def deactivate_rule(self, rule_id: uuid.UUID, *, doctor_id: int | None = None) -> WeeklyAvailabilityRule:
        obj = await self.repo.get_rule(rule_id)
        if obj is None or (doctor_id is not None and obj.doctor_id != doctor_id):
            raise NotFoundError("availability rule not found", field="ruleId")
        if obj.active:
            obj.active = False
            await self.s.commit()
            logger.info("Weekly rule %s deactivated for doctor=%s", rule_id, obj.doctor_id)
        return obj
