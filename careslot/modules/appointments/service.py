import uuid
import logging
from datetime import date, datetime, timedelta
from sqlalchemy.ext.asyncio import AsyncSession
from careslot.core import clock as wallclock
from careslot.core.clock import at_minute
from careslot.core.config import settings
from careslot.core.errors import (
    NotFoundError, ForbiddenError, InvalidTransitionError, PolicyViolationError,
    PaymentFailedError, ExpiredHoldError,
)
from careslot.core.security import Principal
from careslot.modules.appointments.models import Appointment, PENDING_PAYMENT, CONFIRMED, COMPLETED, CANCELLED, EXPIRED
from careslot.modules.appointments.repository import AppointmentRepository
from careslot.modules.booking.repository import BookingRepository
from careslot.platform.ports.notifications import fire
from careslot.platform.provider_registry import registry

logger = logging.getLogger(__name__)

VALID_NEXT = {
    PENDING_PAYMENT: {CONFIRMED, EXPIRED},
    CONFIRMED: {CANCELLED, COMPLETED},
    CANCELLED: set(),
    COMPLETED: set(),
    EXPIRED: set(),
}

class AppointmentService:
    def __init__(self, session: AsyncSession, *, clock: wallclock.Clock = wallclock.now, payments=None, notifier=None,
                 cancellation_window_minutes: int | None = None):
        self.session = session
        self.clock = clock
        self.appts = AppointmentRepository(session)
        self.ledger = BookingRepository(session)
        self.payments = payments or registry.payment_gate()
        self.notifier = notifier or registry.notifier()
        if cancellation_window_minutes is None:
            cancellation_window_minutes = settings.CANCELLATION_WINDOW_MINUTES
        self.cancellation_window = timedelta(minutes=cancellation_window_minutes)

    async def _transition(self, appt: Appointment, nxt: str, **values) -> None:
        if nxt not in VALID_NEXT.get(appt.status, set()):
            raise InvalidTransitionError(f"cannot move appointment from {appt.status} to {nxt}", field="status")
        if not await self.appts.transition(appt.id, appt.status, status=nxt, **values):
            await self.session.rollback()
            raise InvalidTransitionError("appointment changed concurrently; reload it", field="status")
        await self.session.refresh(appt)

    # ---- reads ----
    async def get(self, appt_id: uuid.UUID, actor: Principal | None = None) -> Appointment:
        obj = await self.appts.get(appt_id)
        if obj is None:
            raise NotFoundError("appointment not found", field="appointmentId")
        if actor is not None and actor.user_id != obj.user_id and not actor.acts_for_doctor(obj.doctor_id):
            raise ForbiddenError("not your appointment")
        return obj

    async def list_for_user(self, user_id: int, status: str | None = None):
        return await self.appts.list_for_user(user_id, status=status)

    async def list_for_doctor(self, doctor_id: int, status: str | None = None, day: date | None = None):
        return await self.appts.list_for_doctor(doctor_id, status=status, day=day)

    # ---- transitions ----
    async def cancel(self, appt_id: uuid.UUID, actor: Principal, reason: str | None = None) -> Appointment:
        obj = await self.get(appt_id, actor)
        if obj.status != CONFIRMED:
            raise InvalidTransitionError(f"only confirmed appointments can be cancelled (status is {obj.status})", field="status")
        now = self.clock()
        if now >= at_minute(obj.date, obj.start_minute) - self.cancellation_window:
            logger.warning("Cancel refused for appointment %s: inside cancellation window", obj.id)
            raise PolicyViolationError("appointment can no longer be cancelled")
        await self._transition(obj, CANCELLED, cancel_reason=reason, cancelled_by=actor.user_id)
        # slot reappears as soon as this commits
        await self.ledger.release_appointment(obj.id)
        await self.session.commit()
        logger.info("Appointment %s cancelled by user=%s", obj.id, actor.user_id)
        await fire(self.notifier, "on_cancelled", obj)
        return obj

    async def confirm_payment(self, appt_id: uuid.UUID, user_id: int, payment_id: str, signature: str) -> Appointment:
        obj = await self.get(appt_id)
        if obj.user_id != user_id:
            raise ForbiddenError("not your appointment")
        if obj.status != PENDING_PAYMENT:
            raise InvalidTransitionError(f"appointment is not awaiting payment (status is {obj.status})", field="status")

        if obj.payment_due_at is not None and obj.payment_due_at <= self.clock():
            await self._expire(obj)
            logger.warning("Payment for appointment %s arrived after its deadline", obj.id)
            raise ExpiredHoldError("payment window has closed; hold the slot again")

        if not await self.payments.verify(obj.payment_ref, signature, payment_id):
            await self._expire(obj)
            logger.warning("Payment verification failed for appointment %s", obj.id)
            raise PaymentFailedError("payment could not be verified")

        await self._transition(obj, CONFIRMED, payment_id=payment_id)
        claim = await self.ledger.claim_for_appointment(obj.id)
        if claim is not None:
            claim.expires_at = None
        await self.session.commit()
        logger.info("Appointment %s paid and confirmed", obj.id)
        await fire(self.notifier, "on_confirmed", obj)
        return obj

    async def _expire(self, obj: Appointment) -> None:
        await self._transition(obj, EXPIRED)
        await self.ledger.release_appointment(obj.id)
        await self.session.commit()

    async def complete(self, appt_id: uuid.UUID, actor: Principal) -> Appointment:
        obj = await self.get(appt_id)
        if not actor.acts_for_doctor(obj.doctor_id):
            raise ForbiddenError("only the doctor can complete an appointment")
        await self._transition(obj, COMPLETED)
        await self.session.commit()
        logger.info("Appointment %s completed", obj.id)
        return obj

    # ---- housekeeping ----
    async def sweep(self, now: datetime | None = None) -> dict:
        now = now or self.clock()
        completed = 0
        for a in await self.appts.confirmed_until(now.date()):
            if at_minute(a.date, a.end_minute) <= now and await self.appts.transition(a.id, CONFIRMED, status=COMPLETED):
                completed += 1
        expired = 0
        for a in await self.appts.lapsed_pending(now):
            if await self.appts.transition(a.id, PENDING_PAYMENT, status=EXPIRED):
                await self.ledger.release_appointment(a.id)
                expired += 1
        holds = await self.ledger.delete_lapsed_holds(now)
        await self.session.commit()
        if completed or expired or holds:
            logger.info("Sweep completed=%d expired=%d holds_released=%d", completed, expired, holds)
        return {"completed": completed, "expired": expired, "holds_released": holds}
