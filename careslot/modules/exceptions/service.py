import logging
from datetime import date
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from careslot.core.config import settings
from careslot.core.errors import ValidationError, NotFoundError
from careslot.modules.availability.repository import AvailabilityRepository
from careslot.modules.availability.service import check_window
from careslot.modules.directory.repository import DoctorRepository
from careslot.modules.exceptions.models import DateException
from careslot.modules.exceptions.repository import ExceptionRepository

logger = logging.getLogger(__name__)

class ExceptionService:
    def __init__(self, s: AsyncSession):
        self.s = s
        self.repo = ExceptionRepository(s)
        self.rules = AvailabilityRepository(s)
        self.doctors = DoctorRepository(s)

    async def set_exception(self, doctor_id: int, day: date, *, is_available: bool, start_minute: int | None = None, end_minute: int | None = None, slot_minutes: int | None = None) -> DateException:
        if is_available:
            if start_minute is None or end_minute is None:
                raise ValidationError("an available override needs startTime and endTime", field="startTime" if start_minute is None else "endTime")
            effective = slot_minutes or await self._inherited_slot_minutes(doctor_id, day)
            check_window(start_minute, end_minute, effective)
            data = dict(is_available=True, start_minute=start_minute, end_minute=end_minute, slot_minutes=slot_minutes)
        else:
            # a day off carries no window
            data = dict(is_available=False, start_minute=None, end_minute=None, slot_minutes=None)
        await self.doctors.require(doctor_id)

        try:
            obj = await self.repo.upsert(doctor_id, day, **data)
            await self.s.commit()
        except IntegrityError:
            # lost an insert race on (doctor_id, date); the row exists now, so update it
            await self.s.rollback()
            obj = await self.repo.upsert(doctor_id, day, **data)
            await self.s.commit()
        logger.info("Date exception set for doctor=%s date=%s available=%s", doctor_id, day, is_available)
        return obj

    async def _inherited_slot_minutes(self, doctor_id: int, day: date) -> int:
        # same fallback the slot generator applies to an override without its own granularity
        rules = await self.rules.rules_for_day(doctor_id, day.isoweekday())
        return rules[0].slot_minutes if rules else settings.DEFAULT_SLOT_MINUTES

    async def get_exception(self, doctor_id: int, day: date) -> DateException | None:
        return await self.repo.get(doctor_id, day)

    async def list_exceptions(self, doctor_id: int, start: date | None = None, end: date | None = None):
        return await self.repo.list(doctor_id, start, end)

    async def delete_exception(self, doctor_id: int, day: date) -> None:
        if not await self.repo.delete(doctor_id, day):
            await self.s.rollback()
            raise NotFoundError("date exception not found", field="date")
        await self.s.commit()
        logger.info("Date exception removed for doctor=%s date=%s", doctor_id, day)
