from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Integer, ForeignKey, Index
from careslot.core.base import Base, TimestampedMixin

# Recurring weekly template: day_of_week 1=Mon..7=Sun (ISO), minutes past midnight
class WeeklyAvailabilityRule(Base, TimestampedMixin):
    doctor_id: Mapped[int] = mapped_column(ForeignKey("doctor.id"))
    day_of_week: Mapped[int] = mapped_column(Integer)  # 1..7
    start_minute: Mapped[int] = mapped_column(Integer)  # e.g., 9*60
    end_minute: Mapped[int] = mapped_column(Integer)    # e.g., 17*60
    slot_minutes: Mapped[int] = mapped_column(Integer, default=30)
    active: Mapped[bool] = mapped_column(default=True)

    __table_args__ = (Index("ix_weekly_rule_doctor_day", "doctor_id", "day_of_week"),)
