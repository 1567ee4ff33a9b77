import uuid
import datetime as dt
from pydantic import Field
from careslot.core.schemas import CamelModel, WallTime

class ExceptionSet(CamelModel):
    date: dt.date
    is_available: bool = False
    start_time: WallTime | None = None
    end_time: WallTime | None = None
    slot_duration_minutes: int | None = Field(default=None, ge=5, le=240)

class ExceptionOut(CamelModel):
    id: uuid.UUID
    doctor_id: int
    date: dt.date
    is_available: bool
    start_time: WallTime | None = None
    end_time: WallTime | None = None
    slot_duration_minutes: int | None = None

    @classmethod
    def from_exception(cls, e) -> "ExceptionOut":
        return cls(id=e.id, doctor_id=e.doctor_id, date=e.date, is_available=e.is_available,
                   start_time=e.start_minute, end_time=e.end_minute, slot_duration_minutes=e.slot_minutes)
