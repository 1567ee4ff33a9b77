import logging
from datetime import date, timedelta
from sqlalchemy.ext.asyncio import AsyncSession
from careslot.core import clock as wallclock
from careslot.core.config import settings
from careslot.core.errors import ValidationError
from careslot.modules.availability.repository import AvailabilityRepository
from careslot.modules.exceptions.repository import ExceptionRepository
from careslot.modules.booking.repository import BookingRepository
from careslot.modules.directory.repository import DoctorRepository
from careslot.modules.slots import generator
from careslot.modules.slots.generator import Slot

logger = logging.getLogger(__name__)

class SlotService:
    def __init__(self, s: AsyncSession, *, clock: wallclock.Clock = wallclock.now):
        self.s = s
        self.clock = clock
        self.rules = AvailabilityRepository(s)
        self.exceptions = ExceptionRepository(s)
        self.ledger = BookingRepository(s)
        self.doctors = DoctorRepository(s)

    async def _inputs(self, doctor_id: int, day: date):
        exception = await self.exceptions.get(doctor_id, day)
        rules = await self.rules.rules_for_day(doctor_id, day.isoweekday())
        return rules, exception

    async def template_slots(self, doctor_id: int, day: date) -> list[Slot]:
        """Every slot the schedule offers on the date, reserved or not."""
        rules, exception = await self._inputs(doctor_id, day)
        return generator.template_slots(rules, exception, settings.DEFAULT_SLOT_MINUTES)

    async def generate_slots(self, doctor_id: int, day: date) -> list[Slot]:
        await self.doctors.require(doctor_id)
        rules, exception = await self._inputs(doctor_id, day)
        if exception is not None and not exception.is_available:
            return []
        occupied = await self.ledger.occupied_starts(doctor_id, day, self.clock())
        slots = generator.generate_slots(rules, exception, occupied, settings.DEFAULT_SLOT_MINUTES)
        logger.debug("doctor=%s date=%s free=%d occupied=%d", doctor_id, day, len(slots), len(occupied))
        return slots

    async def summarize(self, doctor_id: int, start: date, end: date) -> list[dict]:
        if end < start:
            raise ValidationError("endDate must not be before startDate", field="endDate")
        if (end - start).days + 1 > settings.MAX_SUMMARY_DAYS:
            raise ValidationError(f"at most {settings.MAX_SUMMARY_DAYS} days per request", field="endDate")
        await self.doctors.require(doctor_id)
        now = self.clock()
        out = []
        day = start
        while day <= end:
            rules, exception = await self._inputs(doctor_id, day)
            offered = generator.template_slots(rules, exception, settings.DEFAULT_SLOT_MINUTES)
            if offered:
                occupied = await self.ledger.occupied_starts(doctor_id, day, now)
                free = [s for s in offered if s.start_minute not in occupied]
                out.append({"date": day, "total_slots": len(offered), "available_slots": len(free)})
            day += timedelta(days=1)
        return out
