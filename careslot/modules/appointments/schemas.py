import uuid
import datetime as dt
from decimal import Decimal
from pydantic import Field
from careslot.core.schemas import CamelModel, WallTime

class HoldCreate(CamelModel):
    doctor_id: int
    date: dt.date
    start_time: WallTime

class HoldOut(CamelModel):
    hold_id: uuid.UUID
    doctor_id: int
    date: dt.date
    start_time: WallTime
    end_time: WallTime
    expires_at: dt.datetime

class BookRequest(CamelModel):
    doctor_id: int
    date: dt.date
    start_time: WallTime
    consultation_type: str = "free"
    hold_id: uuid.UUID | None = None

class CancelRequest(CamelModel):
    reason: str | None = Field(default=None, max_length=500)

class PaymentConfirm(CamelModel):
    payment_id: str = Field(min_length=1, max_length=64)
    signature: str = Field(min_length=1)

class AppointmentOut(CamelModel):
    id: uuid.UUID
    user_id: int
    doctor_id: int
    date: dt.date
    start_time: WallTime
    end_time: WallTime
    status: str
    consultation_type: str
    amount: Decimal
    payment_ref: str | None = None
    payment_due_at: dt.datetime | None = None
    cancel_reason: str | None = None

    @classmethod
    def from_appointment(cls, a) -> "AppointmentOut":
        return cls(
            id=a.id, user_id=a.user_id, doctor_id=a.doctor_id, date=a.date,
            start_time=a.start_minute, end_time=a.end_minute, status=a.status,
            consultation_type=a.consultation_type, amount=a.amount, payment_ref=a.payment_ref,
            payment_due_at=a.payment_due_at, cancel_reason=a.cancel_reason,
        )
