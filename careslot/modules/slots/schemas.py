import datetime as dt
from careslot.core.schemas import CamelModel, WallTime

class SlotOut(CamelModel):
    start_time: WallTime
    end_time: WallTime

class SlotsOut(CamelModel):
    doctor_id: int
    date: dt.date
    slots: list[SlotOut]

class DaySummaryOut(CamelModel):
    date: dt.date
    total_slots: int
    available_slots: int
