import json
import logging
from redis.asyncio import from_url as redis_from_url
from careslot.core.config import settings
from careslot.core.logging import request_id_ctx
from careslot.platform.ports.event_bus import EventBusPort

log = logging.getLogger("bus.redis")

DEFAULT_STREAM = "careslot.events"

class RedisEventBus(EventBusPort):
    """Appends appointment events to a Redis stream; consumers use XREADGROUP."""

    def __init__(self, url: str | None = None, stream: str | None = None):
        url = url or settings.REDIS_URL
        if not url:
            raise RuntimeError("REDIS_URL not configured")
        self.redis = redis_from_url(url, encoding="utf-8", decode_responses=True)
        self.stream = stream or settings.REDIS_STREAM or DEFAULT_STREAM

    async def publish(self, topic: str, key: str, value: dict, headers: dict | None = None) -> None:
        # request id travels with the event
        headers = {"request_id": request_id_ctx.get(), **(headers or {})}
        fields = {
            "topic": topic,
            "key": key,
            "value": json.dumps(value, default=str),
            "headers": json.dumps(headers),
        }
        entry_id = await self.redis.xadd(self.stream, fields, maxlen=settings.REDIS_STREAM_MAXLEN, approximate=True)
        log.debug(f"[REDIS BUS] XADD stream={self.stream} id={entry_id} topic={topic} key={key}")

    async def close(self) -> None:
        await self.redis.aclose()
