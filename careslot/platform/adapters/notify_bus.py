import logging
from careslot.core.clock import format_hhmm
from careslot.platform.ports.event_bus import EventBusPort
from careslot.platform.ports.notifications import NotificationTriggerPort

log = logging.getLogger("notifications.bus")

TOPIC = "careslot.appointments"

def _payload(appointment) -> dict:
    return {
        "appointment_id": str(appointment.id),
        "user_id": appointment.user_id,
        "doctor_id": appointment.doctor_id,
        "date": appointment.date.isoformat(),
        "start_time": format_hhmm(appointment.start_minute),
        "end_time": format_hhmm(appointment.end_minute),
        "status": appointment.status,
        "consultation_type": appointment.consultation_type,
    }

class EventBusNotifier(NotificationTriggerPort):
    """Hands appointment events to the bus; email/SMS workers consume them downstream."""

    def __init__(self, bus: EventBusPort):
        self.bus = bus

    async def on_confirmed(self, appointment) -> None:
        await self.bus.publish(topic=TOPIC, key=str(appointment.id), value={"event_type": "APPT_CONFIRMED", **_payload(appointment)})

    async def on_cancelled(self, appointment) -> None:
        value = {"event_type": "APPT_CANCELLED", "reason": appointment.cancel_reason, **_payload(appointment)}
        await self.bus.publish(topic=TOPIC, key=str(appointment.id), value=value)
