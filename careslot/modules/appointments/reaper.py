import asyncio
import logging
from careslot.core.config import settings
from careslot.core.db import SessionLocal
from careslot.modules.appointments.service import AppointmentService

log = logging.getLogger("appointments.reaper")

# ---- Background reaper ----

async def run_booking_reaper(interval_seconds: float | None = None, session_factory=SessionLocal):
    """Periodic housekeeping; holds and payment deadlines are already ignored at read time."""
    interval = interval_seconds or settings.REAPER_INTERVAL_SECONDS
    log.info("Booking reaper started with interval=%ss", interval)
    try:
        while True:
            async with session_factory() as session:
                try:
                    await AppointmentService(session).sweep()
                except Exception:
                    log.exception("Booking reaper iteration failed")
                    await session.rollback()
            await asyncio.sleep(interval)
    except asyncio.CancelledError:
        log.info("Booking reaper cancelled; shutting down")
        raise
