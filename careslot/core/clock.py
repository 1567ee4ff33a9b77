import re
from datetime import date, datetime, time, timedelta
from typing import Callable

# Facility-local wall clock. Everything in the scheduler is naive local time:
# dates are calendar dates and times of day are minutes past midnight.
Clock = Callable[[], datetime]

MINUTES_PER_DAY = 24 * 60

_HHMM = re.compile(r"^(\d{1,2}):(\d{2})(?::00)?$")

def now() -> datetime:
    return datetime.now().replace(microsecond=0)

def parse_hhmm(value: str) -> int:
    m = _HHMM.match(value.strip())
    if not m:
        raise ValueError("time must be HH:MM")
    hours, minutes = int(m.group(1)), int(m.group(2))
    if minutes > 59 or hours > 24 or (hours == 24 and minutes != 0):
        raise ValueError("time out of range")
    return hours * 60 + minutes

def format_hhmm(minute: int) -> str:
    return f"{minute // 60:02d}:{minute % 60:02d}"

def at_minute(day: date, minute: int) -> datetime:
    return datetime.combine(day, time.min) + timedelta(minutes=minute)
