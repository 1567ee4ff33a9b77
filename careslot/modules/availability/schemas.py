import uuid
from pydantic import Field, model_validator
from careslot.core.clock import MINUTES_PER_DAY
from careslot.core.schemas import CamelModel, WallTime

class RuleSet(CamelModel):
    day_of_week: int = Field(ge=1, le=7)
    start_time: WallTime = Field(ge=0, le=MINUTES_PER_DAY - 1)
    end_time: WallTime = Field(ge=1, le=MINUTES_PER_DAY)
    slot_duration_minutes: int = Field(default=30, ge=5, le=240)
    rule_id: uuid.UUID | None = None

    @model_validator(mode="after")
    def _window(self):
        if self.end_time <= self.start_time:
            raise ValueError("endTime must be after startTime (overnight windows are not supported)")
        return self

class RuleOut(CamelModel):
    id: uuid.UUID
    doctor_id: int
    day_of_week: int
    start_time: WallTime
    end_time: WallTime
    slot_duration_minutes: int
    active: bool

    @classmethod
    def from_rule(cls, r) -> "RuleOut":
        return cls(id=r.id, doctor_id=r.doctor_id, day_of_week=r.day_of_week, start_time=r.start_minute,
                   end_time=r.end_minute, slot_duration_minutes=r.slot_minutes, active=r.active)
