import uuid
from datetime import date
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from careslot.core.db import get_session
from careslot.core.security import get_principal, require_doctor, Principal
from careslot.modules.appointments.schemas import (
    HoldCreate, HoldOut, BookRequest, CancelRequest, PaymentConfirm, AppointmentOut,
)
from careslot.modules.appointments.service import AppointmentService
from careslot.modules.booking.service import BookingLedger

router = APIRouter()

def svc(session: AsyncSession = Depends(get_session)) -> AppointmentService:
    return AppointmentService(session)

def ledger(session: AsyncSession = Depends(get_session)) -> BookingLedger:
    return BookingLedger(session)

# ---- Booking ----

@router.post("/appointments/hold", response_model=HoldOut, status_code=status.HTTP_201_CREATED)
async def hold_slot(payload: HoldCreate, principal: Principal = Depends(get_principal), booking: BookingLedger = Depends(ledger)):
    h = await booking.hold(payload.doctor_id, payload.date, payload.start_time, principal.user_id)
    return HoldOut(hold_id=h.id, doctor_id=h.doctor_id, date=h.date, start_time=h.start_minute, end_time=h.end_minute, expires_at=h.expires_at)

@router.post("/appointments/book", response_model=AppointmentOut, status_code=status.HTTP_201_CREATED)
async def book_slot(payload: BookRequest, principal: Principal = Depends(get_principal), booking: BookingLedger = Depends(ledger)):
    appt = await booking.book(
        payload.doctor_id, payload.date, payload.start_time, principal.user_id,
        payload.consultation_type, hold_id=payload.hold_id,
    )
    return AppointmentOut.from_appointment(appt)

# ---- Lifecycle ----

@router.get("/appointments/me", response_model=list[AppointmentOut])
async def my_appointments(status: str | None = None, principal: Principal = Depends(get_principal), service: AppointmentService = Depends(svc)):
    return [AppointmentOut.from_appointment(a) for a in await service.list_for_user(principal.user_id, status)]

@router.get("/appointments/{appt_id}", response_model=AppointmentOut)
async def get_appointment(appt_id: uuid.UUID, principal: Principal = Depends(get_principal), service: AppointmentService = Depends(svc)):
    return AppointmentOut.from_appointment(await service.get(appt_id, principal))

@router.put("/appointments/{appt_id}/cancel", response_model=AppointmentOut)
async def cancel_appointment(appt_id: uuid.UUID, payload: CancelRequest, principal: Principal = Depends(get_principal), service: AppointmentService = Depends(svc)):
    return AppointmentOut.from_appointment(await service.cancel(appt_id, principal, payload.reason))

@router.post("/appointments/{appt_id}/payment", response_model=AppointmentOut)
async def confirm_payment(appt_id: uuid.UUID, payload: PaymentConfirm, principal: Principal = Depends(get_principal), service: AppointmentService = Depends(svc)):
    appt = await service.confirm_payment(appt_id, principal.user_id, payload.payment_id, payload.signature)
    return AppointmentOut.from_appointment(appt)

@router.post("/appointments/{appt_id}/complete", response_model=AppointmentOut)
async def complete_appointment(appt_id: uuid.UUID, principal: Principal = Depends(get_principal), service: AppointmentService = Depends(svc)):
    return AppointmentOut.from_appointment(await service.complete(appt_id, principal))

@router.get("/doctors/{doctor_id}/appointments", response_model=list[AppointmentOut], dependencies=[Depends(require_doctor)])
async def doctor_appointments(doctor_id: int, status: str | None = None, date: date | None = None, service: AppointmentService = Depends(svc)):
    return [AppointmentOut.from_appointment(a) for a in await service.list_for_doctor(doctor_id, status, date)]
