import uuid
from datetime import date, datetime
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, update, and_, or_
from careslot.modules.booking.models import SlotClaim, HOLD
from careslot.modules.appointments.models import Appointment, PENDING_PAYMENT, CONFIRMED, COMPLETED, EXPIRED

class BookingRepository:
    def __init__(self, s: AsyncSession): self.s = s

    # reads
    async def occupied_starts(self, doctor_id: int, day: date, now: datetime) -> set[int]:
        """Start minutes held or booked for (doctor, date). Lapsed holds and
        lapsed payment deadlines count as released without being deleted."""
        claims = await self.s.execute(select(SlotClaim.start_minute).where(
            SlotClaim.doctor_id == doctor_id,
            SlotClaim.date == day,
            or_(SlotClaim.expires_at.is_(None), SlotClaim.expires_at > now),
        ))
        appts = await self.s.execute(select(Appointment.start_minute).where(
            Appointment.doctor_id == doctor_id,
            Appointment.date == day,
            or_(
                Appointment.status.in_((CONFIRMED, COMPLETED)),
                and_(
                    Appointment.status == PENDING_PAYMENT,
                    or_(Appointment.payment_due_at.is_(None), Appointment.payment_due_at > now),
                ),
            ),
        ))
        return set(claims.scalars().all()) | set(appts.scalars().all())

    async def get_claim(self, claim_id: uuid.UUID) -> SlotClaim | None:
        res = await self.s.execute(select(SlotClaim).where(SlotClaim.id == claim_id))
        return res.scalar_one_or_none()

    async def claim_for_appointment(self, appointment_id: uuid.UUID) -> SlotClaim | None:
        res = await self.s.execute(select(SlotClaim).where(SlotClaim.appointment_id == appointment_id))
        return res.scalar_one_or_none()

    # writes
    async def sweep_key(self, doctor_id: int, day: date, start_minute: int, now: datetime) -> None:
        """Lazy cleanup of one key, run inside the claiming transaction."""
        await self.s.execute(
            update(Appointment)
            .where(
                Appointment.doctor_id == doctor_id,
                Appointment.date == day,
                Appointment.start_minute == start_minute,
                Appointment.status == PENDING_PAYMENT,
                Appointment.payment_due_at <= now,
            )
            .values(status=EXPIRED)
            .execution_options(synchronize_session=False)
        )
        await self.s.execute(
            delete(SlotClaim)
            .where(
                SlotClaim.doctor_id == doctor_id,
                SlotClaim.date == day,
                SlotClaim.start_minute == start_minute,
                SlotClaim.expires_at.is_not(None),
                SlotClaim.expires_at <= now,
            )
            .execution_options(synchronize_session=False)
        )

    async def insert_claim(self, **data) -> SlotClaim:
        # the unique key on (doctor_id, date, start_minute) is the arbiter; IntegrityError means the race was lost
        obj = SlotClaim(**data); self.s.add(obj); await self.s.flush(); return obj

    async def delete_claim(self, claim: SlotClaim) -> None:
        await self.s.delete(claim); await self.s.flush()

    async def release_appointment(self, appointment_id: uuid.UUID) -> None:
        await self.s.execute(
            delete(SlotClaim).where(SlotClaim.appointment_id == appointment_id).execution_options(synchronize_session=False)
        )

    async def delete_lapsed_holds(self, now: datetime) -> int:
        res = await self.s.execute(
            delete(SlotClaim)
            .where(SlotClaim.kind == HOLD, SlotClaim.expires_at <= now)
            .execution_options(synchronize_session=False)
        )
        return res.rowcount or 0
