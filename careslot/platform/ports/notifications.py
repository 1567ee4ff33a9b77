import logging
from typing import Protocol, runtime_checkable

log = logging.getLogger("notifications")

@runtime_checkable
class NotificationTriggerPort(Protocol):
    async def on_confirmed(self, appointment) -> None: ...
    async def on_cancelled(self, appointment) -> None: ...

async def fire(trigger: NotificationTriggerPort, event: str, appointment) -> None:
    """Fire-and-forget: a failed notification never undoes the transition that caused it."""
    try:
        await getattr(trigger, event)(appointment)
    except Exception:
        log.exception("Notification %s failed for appointment %s", event, appointment.id)
