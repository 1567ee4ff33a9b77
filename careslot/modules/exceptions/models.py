import datetime as dt
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Integer, Date, ForeignKey, UniqueConstraint
from careslot.core.base import Base, TimestampedMixin

# One-off override for a calendar date; replaces the weekly template for that date
class DateException(Base, TimestampedMixin):
    doctor_id: Mapped[int] = mapped_column(ForeignKey("doctor.id"))
    date: Mapped[dt.date] = mapped_column(Date)
    is_available: Mapped[bool] = mapped_column(default=False)
    start_minute: Mapped[int | None] = mapped_column(Integer, nullable=True)
    end_minute: Mapped[int | None] = mapped_column(Integer, nullable=True)
    slot_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)

    __table_args__ = (UniqueConstraint("doctor_id", "date", name="uq_date_exception_doctor_date"),)
