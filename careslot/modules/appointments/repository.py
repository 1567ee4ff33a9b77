import uuid
from datetime import date, datetime
from typing import Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, and_
from careslot.modules.appointments.models import Appointment, CONFIRMED, PENDING_PAYMENT

class AppointmentRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, appt_id: uuid.UUID) -> Appointment | None:
        res = await self.session.execute(select(Appointment).where(Appointment.id == appt_id))
        return res.scalar_one_or_none()

    async def list_for_user(self, user_id: int, *, status: str | None = None) -> Sequence[Appointment]:
        cond = [Appointment.user_id == user_id]
        if status:
            cond.append(Appointment.status == status)
        q = select(Appointment).where(and_(*cond)).order_by(Appointment.date.desc(), Appointment.start_minute.desc())
        res = await self.session.execute(q)
        return res.scalars().all()

    async def list_for_doctor(self, doctor_id: int, *, status: str | None = None, day: date | None = None) -> Sequence[Appointment]:
        cond = [Appointment.doctor_id == doctor_id]
        if status:
            cond.append(Appointment.status == status)
        if day:
            cond.append(Appointment.date == day)
        q = select(Appointment).where(and_(*cond)).order_by(Appointment.date.asc(), Appointment.start_minute.asc())
        res = await self.session.execute(q)
        return res.scalars().all()

    async def confirmed_until(self, day: date) -> Sequence[Appointment]:
        # candidates for auto-completion; the caller checks the end minute
        q = select(Appointment).where(Appointment.status == CONFIRMED, Appointment.date <= day)
        res = await self.session.execute(q)
        return res.scalars().all()

    async def lapsed_pending(self, now: datetime) -> Sequence[Appointment]:
        q = select(Appointment).where(Appointment.status == PENDING_PAYMENT, Appointment.payment_due_at <= now)
        res = await self.session.execute(q)
        return res.scalars().all()

    async def transition(self, appt_id: uuid.UUID, from_status: str, **values) -> bool:
        """Compare-and-set on status; False when another request moved it first."""
        res = await self.session.execute(
            update(Appointment)
            .where(Appointment.id == appt_id, Appointment.status == from_status)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return res.rowcount == 1
