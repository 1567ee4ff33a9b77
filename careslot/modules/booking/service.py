import uuid
import logging
from datetime import date, timedelta
from decimal import Decimal
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from careslot.core import clock as wallclock
from careslot.core.clock import at_minute, format_hhmm
from careslot.core.config import settings
from careslot.core.errors import ValidationError, NotAvailableError, ExpiredHoldError
from careslot.modules.appointments.models import Appointment, CONFIRMED, PENDING_PAYMENT
from careslot.modules.booking.models import SlotClaim, HOLD, APPOINTMENT
from careslot.modules.booking.repository import BookingRepository
from careslot.modules.directory.models import Doctor
from careslot.modules.directory.repository import DoctorRepository
from careslot.modules.slots.generator import Slot
from careslot.modules.slots.service import SlotService
from careslot.platform.ports.notifications import fire
from careslot.platform.provider_registry import registry

logger = logging.getLogger(__name__)

FREE = "free"
CONSULTATION_TYPES = (FREE, "clinic", "video")

def is_paid(doctor: Doctor, consultation_type: str) -> bool:
    return consultation_type != FREE and (doctor.consultation_fee or Decimal("0")) > 0

class BookingLedger:
    """Claims slots. The unique key on slotclaim is the only arbiter between
    competing requests; nothing here reads availability and then writes on the
    strength of that read."""

    def __init__(self, s: AsyncSession, *, clock: wallclock.Clock = wallclock.now, payments=None, notifier=None):
        self.s = s
        self.clock = clock
        self.repo = BookingRepository(s)
        self.doctors = DoctorRepository(s)
        self.slots = SlotService(s, clock=clock)
        self.payments = payments or registry.payment_gate()
        self.notifier = notifier or registry.notifier()

    async def _offered(self, doctor_id: int, day: date, start_minute: int, now) -> Slot:
        for slot in await self.slots.template_slots(doctor_id, day):
            if slot.start_minute == start_minute:
                if at_minute(day, start_minute) <= now:
                    raise NotAvailableError("slot has already started", field="startTime")
                return slot
        raise NotAvailableError(f"{format_hhmm(start_minute)} is not an offered slot on {day}", field="startTime")

    async def hold(self, doctor_id: int, day: date, start_minute: int, holder_id: int, ttl_seconds: int | None = None) -> SlotClaim:
        now = self.clock()
        await self.doctors.require(doctor_id)
        slot = await self._offered(doctor_id, day, start_minute, now)
        ttl = ttl_seconds or settings.HOLD_TTL_SECONDS
        try:
            await self.repo.sweep_key(doctor_id, day, start_minute, now)
            obj = await self.repo.insert_claim(
                doctor_id=doctor_id, date=day, start_minute=slot.start_minute, end_minute=slot.end_minute,
                kind=HOLD, holder_id=holder_id, expires_at=now + timedelta(seconds=ttl),
            )
            await self.s.commit()
        except IntegrityError:
            await self.s.rollback()
            logger.info("Hold lost race doctor=%s date=%s start=%s user=%s", doctor_id, day, format_hhmm(start_minute), holder_id)
            raise NotAvailableError("slot was just taken; pick another", field="startTime")
        logger.info("Hold %s doctor=%s date=%s start=%s user=%s until %s", obj.id, doctor_id, day, format_hhmm(start_minute), holder_id, obj.expires_at)
        return obj

    async def book(self, doctor_id: int, day: date, start_minute: int, user_id: int, consultation_type: str, hold_id: uuid.UUID | None = None) -> Appointment:
        if consultation_type not in CONSULTATION_TYPES:
            raise ValidationError(f"consultationType must be one of {', '.join(CONSULTATION_TYPES)}", field="consultationType")
        now = self.clock()
        doctor = await self.doctors.require(doctor_id)
        paid = is_paid(doctor, consultation_type)
        amount = doctor.consultation_fee if paid else Decimal("0")

        if hold_id is not None:
            hold = await self.repo.get_claim(hold_id)
            if hold is None or hold.kind != HOLD or hold.holder_id != user_id:
                raise ValidationError("hold not found for this user", field="holdId")
            if (hold.doctor_id, hold.date, hold.start_minute) != (doctor_id, day, start_minute):
                raise ValidationError("hold is for a different slot", field="holdId")
            if hold.expires_at <= now:
                raise ExpiredHoldError("hold has expired; hold the slot again", field="holdId")
            end_minute, due = hold.end_minute, hold.expires_at
            payment_ref = await self.payments.create_order(amount, str(hold.id)) if paid else None
            try:
                # flushed first so the key is free before the appointment claim is inserted
                await self.repo.delete_claim(hold)
                appt = await self._insert(doctor_id, day, start_minute, end_minute, user_id, consultation_type, amount,
                                          paid=paid, payment_ref=payment_ref, due=due)
                await self.s.commit()
            except IntegrityError:
                await self.s.rollback()
                logger.info("Booking from hold %s lost race", hold_id)
                raise NotAvailableError("slot was just taken; pick another", field="startTime")
        else:
            if paid:
                raise ValidationError("paid consultations must hold the slot before booking", field="holdId")
            slot = await self._offered(doctor_id, day, start_minute, now)
            try:
                await self.repo.sweep_key(doctor_id, day, start_minute, now)
                appt = await self._insert(doctor_id, day, start_minute, slot.end_minute, user_id, consultation_type, amount,
                                          paid=False, payment_ref=None, due=None)
                await self.s.commit()
            except IntegrityError:
                await self.s.rollback()
                logger.info("Booking lost race doctor=%s date=%s start=%s user=%s", doctor_id, day, format_hhmm(start_minute), user_id)
                raise NotAvailableError("slot was just taken; pick another", field="startTime")

        logger.info("Appointment %s %s doctor=%s date=%s start=%s user=%s", appt.id, appt.status, doctor_id, day, format_hhmm(start_minute), user_id)
        if appt.status == CONFIRMED:
            await fire(self.notifier, "on_confirmed", appt)
        return appt

    async def _insert(self, doctor_id, day, start_minute, end_minute, user_id, consultation_type, amount, *, paid, payment_ref, due) -> Appointment:
        appt = Appointment(
            user_id=user_id, doctor_id=doctor_id, date=day, start_minute=start_minute, end_minute=end_minute,
            status=PENDING_PAYMENT if paid else CONFIRMED, consultation_type=consultation_type, amount=amount,
            payment_ref=payment_ref, payment_due_at=due if paid else None,
        )
        self.s.add(appt)
        await self.s.flush()
        await self.repo.insert_claim(
            doctor_id=doctor_id, date=day, start_minute=start_minute, end_minute=end_minute,
            kind=APPOINTMENT, holder_id=user_id, appointment_id=appt.id, expires_at=due if paid else None,
        )
        return appt
