import datetime as dt
from decimal import Decimal
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, Date, DateTime, Numeric, ForeignKey, Index, text
from careslot.core.base import Base, TimestampedMixin

PENDING_PAYMENT = "pending_payment"
CONFIRMED = "confirmed"
COMPLETED = "completed"
CANCELLED = "cancelled"
EXPIRED = "expired"

# statuses that occupy their slot
LIVE_STATUSES = (PENDING_PAYMENT, CONFIRMED, COMPLETED)
_LIVE_SQL = text("status IN ('pending_payment', 'confirmed', 'completed')")

class Appointment(Base, TimestampedMixin):
    user_id: Mapped[int] = mapped_column(Integer, index=True)
    doctor_id: Mapped[int] = mapped_column(ForeignKey("doctor.id"))

    date: Mapped[dt.date] = mapped_column(Date)
    start_minute: Mapped[int] = mapped_column(Integer)
    end_minute: Mapped[int] = mapped_column(Integer)

    status: Mapped[str] = mapped_column(String(24), default=CONFIRMED)  # pending_payment, confirmed, completed, cancelled, expired
    consultation_type: Mapped[str] = mapped_column(String(24))  # free, clinic, video
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))

    # Payment checkout
    payment_ref: Mapped[str | None] = mapped_column(String(64), nullable=True)
    payment_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    payment_due_at: Mapped[dt.datetime | None] = mapped_column(DateTime, nullable=True)

    cancel_reason: Mapped[str | None] = mapped_column(String(500), nullable=True)
    cancelled_by: Mapped[int | None] = mapped_column(Integer, nullable=True)

    __table_args__ = (
        Index(
            "uq_appointment_live_slot", "doctor_id", "date", "start_minute",
            unique=True, postgresql_where=_LIVE_SQL, sqlite_where=_LIVE_SQL,
        ),
        Index("ix_appointment_doctor_date", "doctor_id", "date"),
    )
