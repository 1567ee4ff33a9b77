import json
import logging
from collections import deque
from careslot.platform.ports.event_bus import EventBusPort

log = logging.getLogger("bus.noop")

class NoopEventBus(EventBusPort):
    """Logs events and keeps the most recent ones in memory (local dev, tests)."""

    def __init__(self, keep: int = 100):
        self.published: deque[dict] = deque(maxlen=keep)

    async def publish(self, topic: str, key: str, value: dict, headers: dict | None = None) -> None:
        self.published.append({"topic": topic, "key": key, "value": value})
        log.info(f"[NOOP BUS] topic={topic} key={key} value={json.dumps(value, default=str)}")

    async def close(self) -> None:
        self.published.clear()
