import uuid
import datetime as dt
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, Date, DateTime, ForeignKey, UniqueConstraint
from careslot.core.base import Base, TimestampedMixin

HOLD = "hold"
APPOINTMENT = "appointment"

# The ledger's single shared resource: one row per claimed (doctor, date, start).
# A "hold" row is a temporary SlotHold; an "appointment" row marks a live
# appointment. Both kinds compete for the same unique key.
class SlotClaim(Base, TimestampedMixin):
    doctor_id: Mapped[int] = mapped_column(ForeignKey("doctor.id"))
    date: Mapped[dt.date] = mapped_column(Date)
    start_minute: Mapped[int] = mapped_column(Integer)
    end_minute: Mapped[int] = mapped_column(Integer)

    kind: Mapped[str] = mapped_column(String(16), default=HOLD)  # hold | appointment
    holder_id: Mapped[int] = mapped_column(Integer)
    appointment_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("appointment.id"), nullable=True)
    # holds always expire; appointment rows expire only while awaiting payment
    expires_at: Mapped[dt.datetime | None] = mapped_column(DateTime, nullable=True)

    __table_args__ = (UniqueConstraint("doctor_id", "date", "start_minute", name="uq_slotclaim_key"),)
