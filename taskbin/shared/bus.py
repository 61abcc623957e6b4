"""Redis pub/sub publisher for broadcasting bin status."""

import json
from datetime import datetime, timezone
from typing import Any

import redis.asyncio as aioredis


class RedisBus:
    """Thin async wrapper around Redis publish with JSON envelope."""

    def __init__(self, redis_url: str = "redis://localhost:6379"):
        self._redis_url = redis_url
        self._publisher = None

    @property
    def connected(self) -> bool:
        return self._publisher is not None

    async def connect(self):
        self._publisher = aioredis.from_url(self._redis_url)

    async def disconnect(self):
        if self._publisher:
            await self._publisher.aclose()
            self._publisher = None

    async def publish(self, channel: str, payload: dict[str, Any], sender: str = "unknown"):
        if self._publisher is None:
            raise RuntimeError("RedisBus is not connected")
        envelope = {
            "from": sender,
            "channel": channel,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "payload": payload,
        }
        await self._publisher.publish(channel, json.dumps(envelope))
